"""Command line entry point for the EduVi engine."""
