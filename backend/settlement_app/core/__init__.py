# core/ - orchestration and the external capabilities it sequences
from .config import ServiceConfig
from .orchestrator import SubmissionOrchestrator
