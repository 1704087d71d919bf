# SPDX-License-Identifier: Apache-2.0

"""
Relief grid coordination engine.

Volunteers and supplies for disaster relief organised around map grid cells.
"""

__version__ = "1.0.0"
