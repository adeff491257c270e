"""Run the site with uvicorn: `python -m portfolio` or `portfolio-site`."""

import uvicorn

from portfolio.core.setting import settings


def main() -> None:
    uvicorn.run(
        "portfolio.main:app",
        host=settings.HOST,
        port=settings.PORT,
        proxy_headers=True,
        forwarded_allow_ips=settings.FORWARDED_ALLOW_IPS,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
