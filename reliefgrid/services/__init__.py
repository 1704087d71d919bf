# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - Storage, identity and coordination.
"""

from .repository import InMemoryRepository, Repository
from .mongodb import MongoRepository
from .coordination import CoordinationService, VisibleRecord

__all__ = [
    "Repository",
    "InMemoryRepository",
    "MongoRepository",
    "CoordinationService",
    "VisibleRecord"
]
