"""
check-prepublish — domain layer

File: src/check_prepublish/domain/__init__.py

Purpose
- Domain types shared across stages: PackageDescriptor, PackageInfo, PackageKind,
  VerificationReport.

Functional requirements
- Domain objects are immutable once built and free of IO side effects.
"""

from check_prepublish.domain.models import (
    JSONScalar,
    JSONValue,
    PackageDescriptor,
    PackageInfo,
    PackageKind,
    VerificationReport,
)

__all__ = [
    "JSONScalar",
    "JSONValue",
    "PackageDescriptor",
    "PackageInfo",
    "PackageKind",
    "VerificationReport",
]
