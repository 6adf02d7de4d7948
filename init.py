import logging

from app.app import init_db
from app.core.utils.config import construct_prod_settings
from app.core.utils.log import LogConfig

# Create the tables or run the migrations, then add the super admin roles, before the workers are started.
# `construct_prod_settings()` is called instead of the cached `get_settings()` dependency as we always want the production settings
settings = construct_prod_settings()

LogConfig().initialize_loggers(settings=settings)

hemis_error_logger = logging.getLogger("hemis.error")

hemis_error_logger.warning(
    "Initializing the database before starting the server.",
)

init_db(
    settings=settings,
    hemis_error_logger=hemis_error_logger,
    drop_db=False,
)

if not settings.REDIS_HOST:
    hemis_error_logger.warning(
        "Redis configuration is missing. Menus won't be cached and requests won't be rate limited.",
    )
