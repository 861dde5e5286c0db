#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from importlib.metadata import PackageNotFoundError, version  # pragma: no cover

from omegaconf import OmegaConf

from roombook.constants import DEFAULT_STORE_PATH

try:
    # Change here if project is renamed and does not equal the package name
    dist_name = "roombook"
    __version__ = version(dist_name)
except PackageNotFoundError:  # pragma: no cover
    __version__ = "unknown"
finally:
    del version, PackageNotFoundError


OmegaConf.register_new_resolver(
    "default_store", lambda: str(DEFAULT_STORE_PATH), replace=True
)
