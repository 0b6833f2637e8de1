"""Timekeeping package.

Organized by feature modules (attendance, requests, approvals, reports, ...)
with service layers that depend on repository protocols and a MySQL adapter
for each of them.
"""
