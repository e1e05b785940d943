"""Education Center Admin package.

This package is organized by feature modules (users, courses, students, ...)
with a thin Flask controller layer over service/repository layers, plus a
``client`` module that mirrors server state for the dashboard.
"""
