import streamlit as st
import requests
import os
import zipfile
import io
from pathlib import Path

# --- Configuration ---
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5001/api/v1")
# Absolute path of the backend's workspace directory. Only valid when the
# Streamlit app and the API share a filesystem.
WORKSPACE_BASE_PATH = os.getenv("WORKSPACE_BASE_PATH", str(Path(__file__).resolve().parent.parent / "workspace"))
DEFAULT_SOURCE_DIALECT = "spark"
DEFAULT_TARGET_DIALECT = "doris"


# --- API Call Functions ---

def _api_request(method, endpoint, *, payload=None, params=None, not_found_ok=False):
    """Send one request to the backend and return its JSON body or an ``{"error": ...}`` dict."""
    try:
        response = requests.request(method, f"{API_BASE_URL}/{endpoint}", json=payload, params=params)
    except requests.exceptions.RequestException as req_err:
        st.error(f"Request error occurred: {req_err}")
        return {"error": str(req_err)}

    if not_found_ok and response.status_code == 404:
        return {"error": "Not found", "status_code": 404}

    try:
        body = response.json()
    except ValueError:
        st.error(f"Non-JSON response ({response.status_code}): {response.text}")
        return {"error": response.text, "status_code": response.status_code}

    if not response.ok:
        st.error(f"HTTP {response.status_code}: {body.get('error', response.reason) if isinstance(body, dict) else body}")
    return body

def api_post_request(endpoint, payload):
    return _api_request("POST", endpoint, payload=payload)

def api_get_request(endpoint, params=None):
    # 404 on runs/latest just means "nothing yet"
    return _api_request("GET", endpoint, params=params, not_found_ok=True)

def list_dialects_api():
    """Calls the /dialects endpoint; falls back to the default pair when the API is down."""
    response = api_get_request("dialects")
    return response.get("dialects") or [DEFAULT_SOURCE_DIALECT, DEFAULT_TARGET_DIALECT]

def transpile_sql_api(sql, source_dialect, target_dialect, pretty=True, strict=False):
    """Calls the /sql/transpile endpoint."""
    payload = {
        "sql": sql,
        "source_dialect": source_dialect,
        "target_dialect": target_dialect,
        "pretty": pretty,
        "strict": strict,
    }
    return api_post_request("sql/transpile", payload)

def transpile_batch_api(items, source_dialect, target_dialect, pretty=True):
    """Calls the /sql/batch endpoint."""
    payload = {
        "items": items,
        "source_dialect": source_dialect,
        "target_dialect": target_dialect,
        "pretty": pretty,
    }
    return api_post_request("sql/batch", payload)

def sql_convert_api(input_path, source_dialect, target_dialect, output_dir=None, generate_cleanup=False):
    """Calls the /sql/convert endpoint."""
    payload = {
        "input_path": input_path,
        "source_dialect": source_dialect,
        "target_dialect": target_dialect,
        "generate_cleanup": generate_cleanup,
    }
    if output_dir:
        payload["output_dir"] = output_dir
    return api_post_request("sql/convert", payload)

def latest_run_api():
    """Calls the /sql/runs/latest endpoint."""
    return api_get_request("sql/runs/latest")

def check_guide_api(markdown=None, path=None, verify=False):
    """Calls the /guide/check endpoint with inline markdown or a server-side path."""
    payload = {"verify": verify}
    if markdown is not None:
        payload["markdown"] = markdown
    else:
        payload["path"] = path
    return api_post_request("guide/check", payload)

def list_conversion_configs_api():
    """Calls the /config/conversion endpoint."""
    return api_get_request("config/conversion")


# --- File helpers ---

def create_zip_from_directory(directory_path_abs_str):
    """
    Creates a ZIP archive in memory from all files in a given directory.
    Args:
        directory_path_abs_str (str): Absolute path to the directory to be zipped.
    Returns:
        io.BytesIO: A BytesIO object containing the ZIP data, or None if dir not found.
    """
    dir_path = Path(directory_path_abs_str)
    if not dir_path.is_dir():
        st.error(f"Output directory not found: {dir_path}")
        return None

    zip_buffer = io.BytesIO()
    with zipfile.ZipFile(zip_buffer, "w", zipfile.ZIP_DEFLATED) as zipf:
        for file_path in dir_path.rglob('*'): # rglob gets all files in subdirectories too
            if file_path.is_file():
                arcname = file_path.relative_to(dir_path) # Path in zip relative to dir_path
                zipf.write(file_path, arcname)

    zip_buffer.seek(0)
    return zip_buffer

def get_file_content(file_path):
    """Reads a text file produced by the backend (absolute path or relative to the workspace)."""
    abs_path = Path(file_path) if os.path.isabs(file_path) else Path(WORKSPACE_BASE_PATH) / file_path
    try:
        with open(abs_path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        return f"Error: File not found at {abs_path}"
    except OSError as e:
        return f"Error reading file {abs_path}: {str(e)}"
