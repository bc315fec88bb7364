"""
Result formatting utilities for SQL conversion.
Handles creation of standardized result dictionaries.
"""


def summarize_status(converted: int, failed: int) -> str:
    """Map converted/failed counts to ``success`` / ``partial_success`` / ``error``."""
    if failed and converted:
        return "partial_success"
    if failed:
        return "error"
    return "success"


def create_result_dictionary(status: str, message: str, stats: dict, results: list, output_dir: str = None, source_file: str = None, **kwargs) -> dict:
    """
    Create standardized result dictionary for conversion operations.

    Args:
        status: Overall conversion status ('success', 'error', 'partial_success', 'skipped')
        message: Human-readable status message
        stats: Conversion statistics dictionary
        results: List of individual results (statements or files)
        output_dir: Output directory path (optional)
        source_file: Source file path (optional)
        **kwargs: Additional keys copied into the result

    Returns:
        Standardized result dictionary
    """
    result = {
        "status": status,
        "message": message,
        "stats": dict(stats),
        "results": results,
    }

    if output_dir:
        result["output_directory"] = str(output_dir)
    if source_file:
        result["source_file"] = source_file
    result.update(kwargs)

    return result
