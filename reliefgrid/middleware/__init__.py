# SPDX-License-Identifier: Apache-2.0

"""
Middleware package for request processing.

This package contains the Flask-side components that resolve the current
actor, throttle public submissions and render errors as problem documents.
"""
