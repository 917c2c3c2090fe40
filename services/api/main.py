from __future__ import annotations

import os

from fabrication_estimator.api import create_app
from fabrication_estimator.estimate_service import EstimateService
from fabrication_estimator.estimate_store import InMemoryEstimateStore
from fabrication_estimator.firestore_estimate_store import FirestoreEstimateStore
from fabrication_estimator.logging_config import setup_logging

# Environment configuration
ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")
PROJECT_ID = os.getenv("PROJECT_ID")
FIRESTORE_COLLECTION = os.getenv("FIRESTORE_COLLECTION", "estimates")
MAX_UPLOAD_FILES = int(os.getenv("MAX_UPLOAD_FILES", "3"))

# Setup logging
setup_logging(environment=ENVIRONMENT, project_id=PROJECT_ID)

# Use Firestore in production, in-memory for dev
if ENVIRONMENT == "dev":
    repository = InMemoryEstimateStore()
else:
    repository = FirestoreEstimateStore(project_id=PROJECT_ID, collection_name=FIRESTORE_COLLECTION)

estimate_service = EstimateService(repository=repository)

app = create_app(service=estimate_service, max_upload_files=MAX_UPLOAD_FILES)
