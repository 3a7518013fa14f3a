"""
Core business exceptions for the symbolizer application.

This module defines a hierarchy of custom exceptions to allow for granular
error handling and clear separation of failure domains.
"""


class SymbolizerError(Exception):
    """Base exception for all component-specific errors."""
    pass


# --- Configuration Errors ---

class ConfigurationError(SymbolizerError):
    """Raised for errors related to application configuration."""
    pass


# --- Infrastructure Errors ---

class InfrastructureError(SymbolizerError):
    """Base class for errors related to external systems (network, tools)."""
    pass


class SymbolFetchError(InfrastructureError):
    """Raised when a symbol download fails for a reason other than 404."""
    pass


class DumpDecodeError(InfrastructureError):
    """Raised when the dump decoder produces no output for a located dump."""
    pass


class StackWalkError(InfrastructureError):
    """Raised when the stack-walking engine fails."""
    pass


# --- Domain/Business Logic Errors ---

class DomainError(SymbolizerError):
    """Base class for errors related to the dump file itself."""
    pass


class NotADumpFile(DomainError):
    """Raised when no minidump signature exists anywhere in the file."""
    pass


class TruncatedFile(DomainError):
    """Raised when a file is shorter than the minidump signature."""
    pass
