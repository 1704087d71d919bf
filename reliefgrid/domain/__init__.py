# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the relief grid coordination engine.

This package contains pure business logic: workflow tables, quantity
reconciliation, urgency scoring, bounds derivation, CSV import/export and the
access policy. Nothing here touches storage or the network.
"""
