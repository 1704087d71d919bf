# SPDX-License-Identifier: Apache-2.0

"""
Request parsing helpers shared by the route modules.
"""
