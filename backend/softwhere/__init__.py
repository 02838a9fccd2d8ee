"""Softwhere project estimator backend."""
