import re
from typing import Any, Dict, List, Optional

import sqlglot
import sqlglot.errors

from dorislift.utils.logger import setup_logger
from dorislift.services.sql_conversion.errors import TranspileError
from dorislift.services.sql_conversion.transpiler import transpile_sql
from dorislift.services.sql_conversion.converters.declarative.statement_converter import StatementConverter
from dorislift.services.sql_conversion.utils.dialect_utils import require_dialect
from .markdown_blocks import CodeBlock, extract_code_blocks, pair_blocks

logger = setup_logger('GuideChecker')


def normalize_sql(sql: str, dialect: str) -> str:
    """
    Canonical, case and whitespace insensitive form of *sql* for comparison.

    Text the target dialect cannot parse is compared on its raw
    whitespace-collapsed form.
    """
    try:
        statements = [s.sql(dialect=dialect) for s in sqlglot.parse(sql, read=dialect) if s is not None]
        text = ";".join(statements)
    except sqlglot.errors.SqlglotError as e:
        logger.debug(f"Comparing unparsed text, {dialect} parse failed: {e}")
        text = sql
    text = re.sub(r"\s+", " ", text).strip().rstrip(";").strip()
    return text.lower()


def _verify_pair(source: CodeBlock, target: CodeBlock, converter: StatementConverter,
                 source_dialect: str, target_dialect: str, write_dialect: str) -> Dict[str, Any]:
    try:
        converted = transpile_sql(source.code, source_dialect, target_dialect, converter=converter)
    except TranspileError as e:
        logger.warning(f"Guide block at line {source.line} could not be transpiled: {e}")
        return {"match": False, "converted_sql": None, "error": str(e)}
    except sqlglot.errors.SqlglotError as e:
        logger.warning(f"Guide block at line {source.line} failed in sqlglot: {e}")
        return {"match": False, "converted_sql": None, "error": str(e)}

    converted_sql = ";\n".join(converted)
    match = normalize_sql(converted_sql, write_dialect) == normalize_sql(target.code, write_dialect)
    if not match:
        logger.info(f"Guide pair at lines {source.line}/{target.line} does not match the transpiled output.")
    return {"match": match, "converted_sql": converted_sql, "error": None}


def check_guide(markdown: str, *, verify: bool = False, source_dialect: str = "spark",
                target_dialect: str = "doris", labels: Optional[Dict[str, List[str]]] = None) -> Dict[str, Any]:
    """
    Check that every source-dialect example of a migration guide has a
    matching target-dialect example.

    Args:
        markdown: Guide text.
        verify: Also transpile each source block and compare it with its target block.
        labels: ``{"source": [...], "target": [...]}``; defaults to ``settings.yaml``.

    Returns:
        ``{"status": "pass"|"fail", "stats": {...}, "pairs": [...], "unmatched": [...]}``
    """
    blocks = extract_code_blocks(markdown)
    pairs, unmatched = pair_blocks(blocks, labels)

    stats = {
        "blocks": len(blocks),
        "pairs": len(pairs),
        "unmatched_source": sum(1 for kind, _ in unmatched if kind == "source"),
        "unmatched_target": sum(1 for kind, _ in unmatched if kind == "target"),
        "verified": 0,
        "mismatched": 0,
        "errors": 0,
    }

    converter = None
    write_dialect = None
    if verify and pairs:
        require_dialect(source_dialect)
        write_dialect = require_dialect(target_dialect)
        converter = StatementConverter(source_dialect, target_dialect, pretty=False)

    pair_results = []
    for source, target in pairs:
        entry = {"source": source.to_dict(), "target": target.to_dict()}
        if converter is not None:
            outcome = _verify_pair(source, target, converter, source_dialect, target_dialect, write_dialect)
            entry.update(outcome)
            if outcome["error"]:
                stats["errors"] += 1
            elif outcome["match"]:
                stats["verified"] += 1
            else:
                stats["mismatched"] += 1
        pair_results.append(entry)

    unmatched_results = [{"kind": kind, **block.to_dict()} for kind, block in unmatched]
    failed = bool(unmatched) or stats["mismatched"] > 0 or stats["errors"] > 0
    status = "fail" if failed else "pass"

    logger.info(
        f"Guide check {status}: {stats['pairs']} pair(s), "
        f"{stats['unmatched_source']} unmatched source, {stats['unmatched_target']} unmatched target"
        + (f", {stats['verified']} verified, {stats['mismatched']} mismatched, {stats['errors']} errors" if verify else "")
    )
    return {"status": status, "stats": stats, "pairs": pair_results, "unmatched": unmatched_results}


def check_guide_file(path: str, **kwargs) -> Dict[str, Any]:
    """Read a UTF-8 Markdown guide from *path* and run :func:`check_guide`."""
    with open(path, "r", encoding="utf-8") as f:
        markdown = f.read()
    result = check_guide(markdown, **kwargs)
    result["path"] = str(path)
    return result
