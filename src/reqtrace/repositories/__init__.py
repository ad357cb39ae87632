# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from reqtrace.repositories.record_store import RecordStore

__all__ = [
    "RecordStore",
]
