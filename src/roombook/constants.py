#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from pathlib import Path

PACKAGE_NAME = "roombook"
CONFIGS_ROOT = f"pkg://{PACKAGE_NAME}.configs"
DEFAULT_CACHE_DIR = Path.home() / ".cache" / PACKAGE_NAME
DEFAULT_STORE_PATH = DEFAULT_CACHE_DIR / "bookings.parquet"
