import os

from dorislift.config import config
from .utils.logger import setup_logger

__version__ = "0.3.0"

# Ensure the directory structure defined in settings.yaml exists at import
# time so that any service can safely assume the folders are present.
for key, path in config['base_dirs'].items():
    if key != 'conversion_rules':
        os.makedirs(path, exist_ok=True)

# Also pre-create workspace sub-directories (``converted``, …)
workspace_root = config['base_dirs']['workspace']
for name, sub in config.get("workspace_sub_dirs", {}).items():
    if os.path.sep in sub:
        continue
    os.makedirs(os.path.join(workspace_root, sub), exist_ok=True)

# Log once during package import so we know the package was initialised.
setup_logger('dorislift_init').info('dorislift package initialised with FastAPI backend.')

# ------------------------- FastAPI application ---------------------------

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Create the FastAPI instance
app = FastAPI(title="SparkSQL to Doris Migration API", version=config.get('api', {}).get('version', 'v1'))

# Allow cross-origin requests from any origin (Streamlit runs on localhost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


from .api.routes import api_router

app.include_router(api_router)

route_logger = setup_logger('routes')
for route in app.routes:
    if hasattr(route, 'methods'):
        route_logger.info(f"{list(route.methods)}  {route.path}")
