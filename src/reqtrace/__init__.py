# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""File-backed storage for requirements traceability artifacts."""

__version__ = "0.1.0"
