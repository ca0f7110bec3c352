"""
Central constants for the ClearBroker application.
"""
from __future__ import annotations

import re

# Customer lifecycle
CUSTOMER_STATUSES = ("active", "pending", "inactive")
DEFAULT_CUSTOMER_STATUS = "pending"

CUSTOMER_TYPES = ("exporter", "importer")

# GSTIN: 2-digit state code, 10-char PAN, entity number, literal Z, checksum char
GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$")

# Deliberately loose: one "@", no whitespace, a dot in the domain part.
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 8
