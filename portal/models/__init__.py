"""Database models."""

from portal.models.founder import FounderProfile
from portal.models.application import Application, ApplicationStatus, StatusHistory
from portal.models.evaluation import Evaluation

__all__ = ["FounderProfile", "Application", "ApplicationStatus", "StatusHistory", "Evaluation"]
