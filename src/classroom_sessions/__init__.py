"""Classroom Sessions package.

Class-session scheduling and attendance-window gating, organized by feature
modules (courses, sessions, attendance) with a thin Flask controller layer over
service/repository layers.
"""
