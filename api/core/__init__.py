"""
Shared, cross-cutting code for the API.

`core/` should contain small building blocks that multiple features use
(settings, logging, error types). Keep feature-specific storage logic
in the corresponding feature package (e.g. `uploads/`).
"""
