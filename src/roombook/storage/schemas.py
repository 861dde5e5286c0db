#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import polars as pl

# instants are stored as naive UTC
BOOKINGS_SCHEMA = {
    "id": pl.String,
    "room": pl.Int32,
    "person": pl.String,
    "purpose": pl.String,
    "start": pl.Datetime("us"),
    "end": pl.Datetime("us"),
    "created_at": pl.Datetime("us"),
}
