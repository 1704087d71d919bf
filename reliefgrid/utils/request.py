# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request utilities for extracting and processing request data.
"""

from flask import request
from typing import Dict, Any, Optional, Type, TypeVar
from pydantic import BaseModel
import logging

from ..domain.errors import ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)


class RequestParser:
    """Utility for parsing and extracting request data."""

    @staticmethod
    def parse_json_body(required: bool = True) -> Optional[Dict[str, Any]]:
        """
        Parse JSON request body with error handling.

        Args:
            required: Whether JSON body is required

        Returns:
            Parsed JSON data or None

        Raises:
            ValidationError: If JSON is required but missing or invalid
        """
        if not request.is_json:
            if required:
                raise ValidationError("Request must have Content-Type: application/json")
            return None

        data = request.get_json(silent=True)
        if data is None:
            if required:
                raise ValidationError("No valid JSON data provided")
            return None
        if not isinstance(data, dict):
            raise ValidationError("JSON body must be an object")
        return data

    @staticmethod
    def parse_body(model: Type[ModelT]) -> ModelT:
        """
        Validate the JSON body against a request model.

        Pydantic errors propagate and are rendered as 422 by the error handler.
        """
        return model.model_validate(RequestParser.parse_json_body())

    @staticmethod
    def get_filter_params(model: Type[ModelT]) -> ModelT:
        """
        Build a filter model from query parameters.

        Unknown parameters are ignored, empty values are treated as absent.
        """
        fields = model.model_fields
        values = {
            key: value for key, value in request.args.items()
            if key in fields and value != ''
        }
        return model.model_validate(values)

    @staticmethod
    def get_flag(name: str, default: bool = False) -> bool:
        """Boolean query parameter."""
        value = request.args.get(name)
        if value is None:
            return default
        return value.lower() in ['true', '1', 'yes', 'on']
