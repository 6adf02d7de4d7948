import importlib
import logging
from pathlib import Path

from app.types.module import CoreModule

hemis_error_logger = logging.getLogger("hemis.error")

core_module_list: list[CoreModule] = []

for endpoints_file in sorted(Path().glob("app/core/*/endpoints_*.py")):
    endpoint_module = importlib.import_module(
        ".".join(endpoints_file.with_suffix("").parts),
    )
    if hasattr(endpoint_module, "core_module"):
        core_module: CoreModule = endpoint_module.core_module
        core_module_list.append(core_module)
    else:
        hemis_error_logger.error(
            f"Core module {endpoints_file} does not declare a core module. It won't be enabled.",
        )
