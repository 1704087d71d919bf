# SPDX-License-Identifier: Apache-2.0

"""
HTTP endpoints for the relief grid coordination API.
"""
