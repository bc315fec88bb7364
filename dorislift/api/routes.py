from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse
from typing import Dict, Any
import json
import os

from dorislift import config, __version__  # Global config
from dorislift.utils.timing import timed
from dorislift.utils.logger import setup_logger
from dorislift.utils.path_utils import converted_root, resolve_converted_run
from ..services.sql_conversion import (
    ConversionOrchestrator,
    TranspileError,
    UnsupportedDialectError,
    transpile_sql,
    transpile_batch,
)
from ..services.sql_conversion.utils.dialect_utils import list_supported_dialects
from ..services.sql_conversion.utils.config_loader import list_conversion_configs
from ..services.guide import check_guide, check_guide_file

api_router = APIRouter(prefix='/api/v1')

# Setup logger for API
logger = setup_logger('api_routes')

_conversion_defaults = config.get('conversion', {})
DEFAULT_SOURCE = _conversion_defaults.get('source_dialect', 'spark')
DEFAULT_TARGET = _conversion_defaults.get('target_dialect', 'doris')


@api_router.get('/')
def root():
    """Root endpoint of the API.

    Returns the service name and the default dialect pair.
    """
    return JSONResponse({
        "message": "API is running",
        "service": "dorislift",
        "version": __version__,
        "source_dialect": DEFAULT_SOURCE,
        "target_dialect": DEFAULT_TARGET,
    })


@api_router.get('/dialects')
def dialects():
    return JSONResponse({"dialects": list_supported_dialects()})


@api_router.post('/sql/transpile')
def transpile_endpoint(payload: Dict[str, Any] = Body(...)):
    """Transpile one SQL string (one or more statements)."""
    sql = payload.get('sql')
    if not sql or not isinstance(sql, str):
        return JSONResponse({'error': "Missing required field: sql"}, status_code=400)

    source_dialect = payload.get('source_dialect') or DEFAULT_SOURCE
    target_dialect = payload.get('target_dialect') or DEFAULT_TARGET
    try:
        statements = transpile_sql(
            sql, source_dialect, target_dialect,
            pretty=bool(payload.get('pretty', False)),
            strict=bool(payload.get('strict', False)),
        )
        return JSONResponse({
            'status': 'success',
            'statements': statements,
            'sql': ";\n".join(statements),
        })
    except UnsupportedDialectError as ude:
        return JSONResponse({'error': str(ude)}, status_code=400)
    except TranspileError as te:
        return JSONResponse({'error': str(te), 'details': te.sql}, status_code=400)
    except Exception as e:
        logger.error(f"An unhandled exception occurred in /sql/transpile: {e}", exc_info=True)
        return JSONResponse({'error': 'An internal server error occurred.', 'details': str(e)}, status_code=500)


@api_router.post('/sql/batch')
def batch_endpoint(payload: Dict[str, Any] = Body(...)):
    """Transpile independent queries; failures are reported per item."""
    items = payload.get('items')
    if not isinstance(items, list) or not items:
        return JSONResponse({'error': "'items' must be a non-empty list"}, status_code=400)

    try:
        result = transpile_batch(
            items,
            payload.get('source_dialect') or DEFAULT_SOURCE,
            payload.get('target_dialect') or DEFAULT_TARGET,
            pretty=bool(payload.get('pretty', False)),
        )
        return JSONResponse(result)
    except UnsupportedDialectError as ude:
        return JSONResponse({'error': str(ude)}, status_code=400)
    except Exception as e:
        logger.error(f"An unhandled exception occurred in /sql/batch: {e}", exc_info=True)
        return JSONResponse({'error': 'An internal server error occurred.', 'details': str(e)}, status_code=500)


@api_router.post('/sql/convert')
def convert_sql_endpoint(payload: Dict[str, Any] = Body(...)):
    """Convert a directory (or single file) of SQL scripts."""
    try:
        input_path = payload.get('input_path')
        if not input_path:
            return JSONResponse({'error': 'Missing required field: input_path'}, status_code=400)
        if not os.path.exists(input_path):
            return JSONResponse({'error': f'Input path does not exist: {input_path}'}, status_code=404)

        # Create a new orchestrator instance for each request
        orchestrator = ConversionOrchestrator(
            payload.get('source_dialect') or DEFAULT_SOURCE,
            payload.get('target_dialect') or DEFAULT_TARGET,
            pretty=bool(payload.get('pretty', _conversion_defaults.get('pretty', True))),
            generate_cleanup=bool(payload.get('generate_cleanup', False)),
        )
        result = timed(orchestrator.convert, input_path, output_dir_override=payload.get('output_dir'))
        return JSONResponse(result)

    except ValueError as ve:
        return JSONResponse({'error': str(ve)}, status_code=400)
    except Exception as e:
        logger.error(f"An unhandled exception occurred in /sql/convert: {e}", exc_info=True)
        return JSONResponse({'error': 'An internal server error occurred.', 'details': str(e)}, status_code=500)


@api_router.get('/sql/runs/latest')
def latest_run():
    """Summary of the newest conversion run."""
    try:
        run_dir = resolve_converted_run(converted_root())
    except FileNotFoundError as err:
        return JSONResponse({'error': str(err)}, status_code=404)

    summary_path = run_dir / 'conversion_summary.json'
    summary = None
    if summary_path.is_file():
        try:
            with open(summary_path, 'r', encoding='utf-8') as f:
                summary = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read {summary_path}: {e}")
            return JSONResponse({'error': f'Could not read run summary: {e}'}, status_code=500)

    return JSONResponse({'run_directory': str(run_dir), 'run_name': run_dir.name, 'summary': summary})


@api_router.post('/guide/check')
def guide_check_endpoint(payload: Dict[str, Any] = Body(...)):
    """Check a Markdown migration guide for paired SparkSQL / Doris SQL examples."""
    markdown = payload.get('markdown')
    path = payload.get('path')
    options = {
        'verify': bool(payload.get('verify', False)),
        'source_dialect': payload.get('source_dialect') or DEFAULT_SOURCE,
        'target_dialect': payload.get('target_dialect') or DEFAULT_TARGET,
    }
    try:
        if markdown is not None:
            return JSONResponse(check_guide(markdown, **options))
        if path:
            if not os.path.isfile(path):
                return JSONResponse({'error': f'Guide file not found: {path}'}, status_code=404)
            return JSONResponse(check_guide_file(path, **options))
        return JSONResponse({'error': "Provide either 'markdown' or 'path'"}, status_code=400)
    except UnsupportedDialectError as ude:
        return JSONResponse({'error': str(ude)}, status_code=400)
    except Exception as e:
        logger.error(f"An unhandled exception occurred in /guide/check: {e}", exc_info=True)
        return JSONResponse({'error': 'An internal server error occurred.', 'details': str(e)}, status_code=500)


@api_router.get('/config/conversion')
def conversion_configs():
    """Dialect pairs that ship rule files, with the files they ship."""
    return JSONResponse({
        'default_pair': {'source_dialect': DEFAULT_SOURCE, 'target_dialect': DEFAULT_TARGET},
        'pairs': list_conversion_configs(),
    })
