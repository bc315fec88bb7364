"""ConversionOrchestrator – high-level driver for batch SQL file conversion.

Responsibilities
----------------
1. Locate input *.sql files (a directory tree or a single file).
2. Prepare the output directory (`converted/<src>_<tgt>_<timestamp>`).
3. Create and configure the `StatementConverter`.
4. For each file:
     • split into statements with the source dialect's tokenizer
     • parse each statement on its own → filter skip-patterns (config-driven)
     • delegate to the converter; a failing statement is recorded and
       commented out in the output, the rest of the file still converts
     • write converted SQL and collect stats.
5. Produce `conversion_summary.json`, `conversion_report.csv`, the manual
   review log and (optionally) `00_cleanup.sql`.

All detailed rewrite logic lives in the converter layer; orchestrator only
handles I/O, logging and aggregation.

NOTE: Functions starting with _ are private (internal use only).
      Functions without _ are public (intended for external calling).
"""

import os
import re
import json
from pathlib import Path
from typing import Dict, Optional, List, Any, Tuple

import sqlglot.errors

from dorislift.utils.file_utils import find_sql_files, create_processing_stats, make_relative_path, write_file_content, write_csv
from dorislift.utils.logger import setup_logger
from .utils.directory_utils import create_run_directory
from .utils.dialect_utils import require_dialect
from .utils.parser_utils import safe_parse_one
from .utils.result_formatter import create_result_dictionary
from .utils.sql_preprocessing import normalize_sql_content, split_statements, strip_leading_comments, write_converted_sql_file
from .utils.config_loader import load_json_from_conversion_config
from .utils.manual_review_logger import ManualReviewLogger
from .converters.declarative.statement_converter import StatementConverter

_CREATED_OBJECT_RX = re.compile(
    r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:EXTERNAL\s+)?(TABLE|VIEW|MATERIALIZED\s+VIEW)\s+(?:IF\s+NOT\s+EXISTS\s+)?([\w`\"\.]+)",
    re.IGNORECASE | re.MULTILINE,
)

REPORT_HEADERS = ["file", "statement_index", "line", "status", "source_sql", "converted_sql", "error"]


class ConversionOrchestrator:

    def __init__(self, source_dialect: str, target_dialect: str, *, pretty: bool = True, strict: bool = False,
                 generate_cleanup: bool = False):
        self.logger = setup_logger("ConversionOrchestrator")
        self.read_dialect = require_dialect(source_dialect)
        require_dialect(target_dialect)

        self.source_dialect = source_dialect
        self.target_dialect = target_dialect
        self.pretty = pretty
        self.strict = strict
        self.generate_cleanup = generate_cleanup
        self.manual_review_logger = None
        self.statement_converter = None
        self.logger.info(f"Orchestrator ready: {source_dialect} -> {target_dialect}")

    def setup_converters(self, output_dir: str) -> StatementConverter:
        """Creates the manual review logger and statement converter for one run."""
        self.manual_review_logger = ManualReviewLogger(output_dir=str(output_dir), logger=self.logger)
        self.statement_converter = StatementConverter(
            self.source_dialect, self.target_dialect,
            pretty=self.pretty, strict=self.strict,
            manual_review_logger=self.manual_review_logger,
        )
        self.logger.info(f"Created converters: statement for {self.source_dialect}_{self.target_dialect}")
        return self.statement_converter

    def convert(self, input_path: str, output_dir_override: Optional[str] = None) -> dict:
        """Convert every SQL file under *input_path*; see module docstring for outputs."""
        self.logger.info(f"Starting SQL conversion: {self.source_dialect} -> {self.target_dialect}")

        sql_files = find_sql_files(input_path)
        if not sql_files:
            self.logger.warning(f"No SQL files found in: {input_path}")
            return {
                "status": "error",
                "message": f"No SQL files found in {input_path}",
                "output_dir": None,
                "stats": create_processing_stats(),
                "file_results": [],
            }

        source_root = input_path if os.path.isdir(input_path) else os.path.dirname(input_path)
        output_dir = self._setup_output_dir(output_dir_override)
        self.setup_converters(output_dir)
        skip_patterns = self._get_skip_patterns()

        self.logger.info(f"Processing {len(sql_files)} SQL files from: {input_path}")
        self.logger.info(f"Output directory: {output_dir}")

        stats = create_processing_stats()
        stats['total_files'] = len(sql_files)
        file_results: list[dict] = []
        aggregated_logs: list[dict] = []
        report_rows: list[list] = []
        created_objects: list[tuple[str, str]] = []

        for i, file_path in enumerate(sql_files, 1):
            rel_path = make_relative_path(file_path, source_root).replace(os.sep, '/')
            self.logger.info(f"[{i}/{len(sql_files)}] Processing: {rel_path}")
            self.manual_review_logger.current_file = rel_path

            result = self._process_file(file_path, rel_path, output_dir, skip_patterns, stats, report_rows)
            file_results.append({
                "file_name": rel_path,
                "status": result["status"],
                "message": result["message"],
                "stats": result["stats"],
                "output_file": result.get("output_file"),
            })
            aggregated_logs.extend(result.get("logs", []))
            self._log_file_result(rel_path, result)

            for stmt in result.get("converted_statements", []):
                m = _CREATED_OBJECT_RX.search(stmt)
                if m:
                    created_objects.append((re.sub(r"\s+", " ", m.group(1).upper()), m.group(2)))

        cleanup_file = self._write_cleanup_script(output_dir, created_objects) if self.generate_cleanup else None

        summary_payload = {
            "source_dialect": self.source_dialect,
            "target_dialect": self.target_dialect,
            "overall_statistics": stats,
            "files": file_results,
            "conversion_logs": aggregated_logs,
            "output_directory": str(output_dir),
        }
        summary_file = self._write_conversion_summary_to_file(summary_payload, output_dir)
        report_file = os.path.join(output_dir, "conversion_report.csv")
        write_csv(report_file, REPORT_HEADERS, report_rows)
        review_file = self.manual_review_logger.write_manual_review_log()

        self._log_conversion_summary(stats)

        if stats['files_failed'] == stats['total_files']:
            status = "error"
        elif stats['files_failed'] or stats['files_partial']:
            status = "partial_success"
        else:
            status = "success"

        return {
            "status": status,
            "message": f"Conversion finished for {len(sql_files)} files.",
            "output_dir": str(output_dir),
            "stats": stats,
            "file_results": file_results,
            "summary_file": summary_file,
            "report_file": report_file,
            "manual_review_file": review_file,
            "cleanup_file": cleanup_file,
        }

    # ========================================
    # FILE PROCESSING
    # ========================================

    def _process_file(self, file_path: str, rel_path: str, output_dir: str, skip_patterns: List[str],
                      stats: dict, report_rows: list) -> Dict[str, Any]:
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = normalize_sql_content(f.read())
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Could not read {file_path}: {e}")
            stats['files_failed'] += 1
            return create_result_dictionary("error", f"Could not read file: {e}", {}, [], source_file=file_path)

        statements = self._split_file(content, rel_path)
        if not statements:
            stats['files_skipped'] += 1
            return create_result_dictionary("skipped", f"No SQL statements found in {rel_path}", {}, [], source_file=file_path)

        file_stats = {"statements": len(statements), "converted": 0, "skipped": 0, "errors": 0}
        output_statements: List[str] = []
        converted_statements: List[str] = []
        file_logs: List[dict] = []

        for item in statements:
            outcome, parts, error = self._convert_item(item, rel_path, skip_patterns, file_logs)
            if outcome == "skipped":
                file_stats["skipped"] += 1
                report_rows.append([rel_path, item["index"], item["line"], "skipped", item["sql"], "", ""])
                continue
            if outcome == "error":
                file_stats["errors"] += 1
                output_statements.append(self._format_error_block(item, error))
                report_rows.append([rel_path, item["index"], item["line"], "error", item["sql"], "", error])
                continue
            file_stats["converted"] += 1
            output_statements.extend(parts)
            converted_statements.extend(parts)
            report_rows.append([rel_path, item["index"], item["line"], "success", item["sql"], ";\n".join(parts), ""])

        stats['total_statements'] += file_stats["statements"]
        stats['statements_converted'] += file_stats["converted"]
        stats['statements_skipped'] += file_stats["skipped"]
        stats['statements_with_errors'] += file_stats["errors"]

        if not output_statements:
            stats['files_skipped'] += 1
            result = create_result_dictionary("skipped", f"All statements skipped in {rel_path}", file_stats, [], source_file=file_path)
            result["logs"] = file_logs
            return result

        output_path = os.path.join(output_dir, rel_path)
        write_result = write_converted_sql_file(output_path, output_statements, self.logger, file_path)
        if write_result["status"] != "success":
            stats['files_failed'] += 1
            result = create_result_dictionary("error", f"Failed to write output: {write_result.get('error_message')}",
                                              file_stats, [], source_file=file_path)
            result["logs"] = file_logs
            return result

        if file_stats["errors"] and not file_stats["converted"]:
            status, message = "error", f"No statement of {rel_path} could be converted"
            stats['files_failed'] += 1
        elif file_stats["errors"]:
            status, message = "partial_success", f"Converted {rel_path} with {file_stats['errors']} error(s)"
            stats['files_partial'] += 1
        else:
            status, message = "success", f"Successfully converted {rel_path}"
            stats['files_successful'] += 1

        result = create_result_dictionary(status, message, file_stats, [], source_file=file_path, output_file=output_path)
        result["converted_statements"] = converted_statements
        result["logs"] = file_logs
        return result

    def _split_file(self, content: str, rel_path: str) -> List[Dict]:
        """Split file content into statements; untokenizable content becomes one item."""
        try:
            return split_statements(content, self.read_dialect)
        except sqlglot.errors.TokenError as e:
            self.logger.warning(f"Could not tokenize {rel_path} ({e}); treating the file as a single statement.")
            return [{"index": 1, "line": 1, "sql": content.strip()}] if content.strip() else []

    def _convert_item(self, item: Dict, rel_path: str, skip_patterns: List[str],
                      file_logs: List[dict]) -> Tuple[str, List[str], Optional[str]]:
        """Convert one statement; returns ``(outcome, converted_parts, error)``."""
        # Spark-only commands such as CLEAR CACHE parse into unrelated expressions
        if self._matches_skip_pattern(strip_leading_comments(item["sql"]), skip_patterns):
            self.logger.info("Skipping statement %s in %s: %.100s", item["index"], rel_path, item["sql"])
            return "skipped", [], None

        ast, parse_error = safe_parse_one(item["sql"], self.read_dialect)
        if parse_error:
            self.logger.error(f"Parse error in {rel_path} statement {item['index']} (line {item['line']}): {parse_error}")
            file_logs.append({"file": rel_path, "statement_index": item["index"], "action": "error", "details": parse_error})
            return "error", [], parse_error

        if ast is None:
            return "skipped", [], None

        if self._matches_skip_pattern(ast.sql(dialect=self.read_dialect, comments=False).strip(), skip_patterns):
            self.logger.info("Skipping statement %s in %s: %.100s", item["index"], rel_path, item["sql"])
            return "skipped", [], None

        try:
            parts, logs = self.statement_converter.convert_statement(ast)
        except Exception as e:
            self.logger.error(f"Error converting statement {item['index']} in {rel_path}: {e}", exc_info=True)
            file_logs.append({"file": rel_path, "statement_index": item["index"], "action": "error", "details": str(e)})
            return "error", [], str(e)

        for log_entry in logs:
            file_logs.append({"file": rel_path, "statement_index": item["index"], **log_entry})

        errors = [log.get("details", "Unknown error from handler") for log in logs if log.get("action") == "error"]
        if errors:
            return "error", [], "; ".join(errors)
        return "success", parts, None

    @staticmethod
    def _matches_skip_pattern(statement: str, skip_patterns: List[str]) -> bool:
        return any(re.search(p, statement, re.IGNORECASE) for p in skip_patterns or [])

    @staticmethod
    def _format_error_block(item: Dict, error: str) -> str:
        first_line = (error or "unknown error").strip().splitlines()[0]
        lines = [f"-- CONVERSION ERROR (statement {item['index']}, line {item['line']}): {first_line}"]
        lines.extend(f"-- {line}" for line in item["sql"].splitlines())
        return "\n".join(lines)

    # ========================================
    # HELPER METHODS
    # ========================================

    def _get_skip_patterns(self) -> List[str]:
        """Skip patterns from dialect_behaviors.json, when statement skipping is enabled."""
        config = load_json_from_conversion_config(
            self.logger, self.source_dialect, self.target_dialect, 'ddl_conversion_rules', 'dialect_behaviors.json'
        )
        skip_config = config.get('statement_skipping', {})
        if not skip_config.get('enabled', False):
            self.logger.debug("Statement skipping is disabled in config.")
            return []
        patterns = skip_config.get('patterns', [])
        self.logger.debug(f"Found {len(patterns)} enabled skip patterns.")
        return patterns

    def _setup_output_dir(self, output_dir_override: Optional[str] = None) -> str:
        """Creates the output directory for converted files."""
        if output_dir_override:
            try:
                os.makedirs(output_dir_override, exist_ok=True)
            except OSError as e:
                self.logger.error("Failed to create output directory '%s': %s", output_dir_override, e, exc_info=True)
                raise
            return str(output_dir_override)

        prefix = f"{self.source_dialect.lower()}_{self.target_dialect.lower()}"
        return str(create_run_directory(prefix=prefix))

    def _write_cleanup_script(self, output_dir: str, created_objects: List[tuple[str, str]]) -> Optional[str]:
        drop_lines = [
            f"DROP {obj_type} IF EXISTS {obj_name};"
            for obj_type, obj_name in sorted(set(created_objects))
        ]
        if not drop_lines:
            return None
        cleanup_path = os.path.join(output_dir, "00_cleanup.sql")
        write_file_content(cleanup_path, "\n".join(drop_lines) + "\n")
        self.logger.info("Cleanup script written: %s", cleanup_path)
        return cleanup_path

    def _log_file_result(self, rel_path: str, file_result: Dict):
        """Logs the outcome of a single file's conversion."""
        status = file_result.get('status', 'unknown')
        message = file_result.get('message', '')

        if status == 'success':
            self.logger.info(f"Successfully processed: {rel_path}")
        elif status == 'error':
            self.logger.error(f"Failed to process: {rel_path} - {message}")
        elif status == 'skipped':
            self.logger.info(f"Skipped: {rel_path} - {message}")
        else:
            self.logger.warning(f"Processed with errors: {rel_path} - {message}")

        file_stats = file_result.get('stats', {})
        if file_stats:
            self.logger.debug(
                f"Stats for {rel_path}: "
                f"Statements: {file_stats.get('converted', 0)} converted, "
                f"{file_stats.get('skipped', 0)} skipped, "
                f"{file_stats.get('errors', 0)} errors"
            )

    def _log_conversion_summary(self, stats: Dict):
        self.logger.info("="*50)
        self.logger.info("SQL CONVERSION SUMMARY")
        self.logger.info("="*50)
        self.logger.info(f"Total files processed: {stats['total_files']}")
        self.logger.info(f"  - Successful: {stats['files_successful']}")
        self.logger.info(f"  - Partial: {stats['files_partial']}")
        self.logger.info(f"  - Failed: {stats['files_failed']}")
        self.logger.info(f"  - Skipped: {stats['files_skipped']}")
        self.logger.info(f"Total statements converted: {stats['statements_converted']}")
        self.logger.info(f"Total statements with errors: {stats['statements_with_errors']}")

    def _write_conversion_summary_to_file(self, summary_data_dict: Dict, output_dir: str) -> Optional[str]:
        """
        Writes the conversion summary to a JSON file in the output directory.
        """
        summary_file_path = os.path.join(output_dir, 'conversion_summary.json')
        try:
            def json_default(o):
                if isinstance(o, Path):
                    return str(o)
                return f"<<non-serializable: {type(o).__name__}>>"

            with open(summary_file_path, 'w', encoding='utf-8') as f:
                json.dump(summary_data_dict, f, indent=4, default=json_default)
            self.logger.info(f"Conversion summary written to: {summary_file_path}")
            return summary_file_path
        except OSError as e:
            self.logger.error(f"Failed to write conversion summary: {e}", exc_info=True)
            return None
