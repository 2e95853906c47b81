"""Worker readiness & attendance reconciliation package.

This package is organized by feature modules (checkins, absences, performance, ...)
with a thin Flask controller layer and SOLID service/repository layers.
"""
