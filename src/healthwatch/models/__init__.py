from healthwatch.db.database import Base

# Import all models so metadata.create_all can discover them
from .endpoint import Endpoint, EndpointStatus, DEFAULT_TIMEOUT_MS, MAX_TIMEOUT_MS
