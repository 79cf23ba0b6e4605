"""Run the management API with uvicorn.

Usage:
    MANAGEMENT_API_PORT=8081 python -m provisioner
"""

import uvicorn

from provisioner.core.config import get_settings
from provisioner.main import create_application


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_application(),
        host=settings.management_api_host,
        port=settings.management_api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
