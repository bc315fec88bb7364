import re
from typing import Any, Dict, List, Optional

from sqlglot import exp
from sqlglot.errors import ErrorLevel

from dorislift.services.sql_conversion.utils.parser_utils import safe_parse_one
from dorislift.services.sql_conversion.utils.config_loader import load_json_from_conversion_config
from dorislift.services.sql_conversion.utils.dialect_utils import require_dialect
from dorislift.services.sql_conversion.utils.regex_utils import re_flags
from dorislift.services.sql_conversion.utils.sql_preprocessing import apply_regex_fixes
from dorislift.utils.logger import setup_logger
from dorislift.services.sql_conversion.converters.base_converter import BaseConverter
from dorislift.services.sql_conversion.converters.declarative.ddl_handler import DdlHandler
from dorislift.services.sql_conversion.converters.declarative.function_rewriter import FunctionRewriter

# Query modifiers Spark inherits from Hive that Doris does not accept
_QUERY_CLAUSE_TYPES = {
    'distribute': exp.Distribute,
    'sort': exp.Sort,
    'cluster': exp.Cluster,
}


class StatementConverter(BaseConverter):
    """
    Acts as a router, inspecting the SQL statement and delegating to the
    appropriate specialized handler.
    """
    def __init__(self, source_dialect: str, target_dialect: str, *, pretty: bool = True, strict: bool = False,
                 manual_review_logger=None, function_rules: Optional[List[Dict[str, Any]]] = None):
        super().__init__(source_dialect, target_dialect)
        self.logger = setup_logger('StatementConverter')
        self.read_dialect = require_dialect(source_dialect)
        self.write_dialect = require_dialect(target_dialect)
        self.pretty = pretty
        self.strict = strict
        self.manual_review_logger = manual_review_logger

        self.behavior_config = load_json_from_conversion_config(
            self.logger, source_dialect, target_dialect, 'ddl_conversion_rules', 'dialect_behaviors.json'
        )
        rules_config = load_json_from_conversion_config(
            self.logger, source_dialect, target_dialect, None, 'function_rules.json'
        )
        self.cleanup_fixes = rules_config.get('cleanup_fixes', [])
        self.function_rewriter = FunctionRewriter(
            source_dialect, target_dialect,
            rules=function_rules if function_rules is not None else rules_config.get('functions', []),
        )
        self.ddl_handler = DdlHandler(source_dialect, target_dialect, manual_review_logger=self.manual_review_logger, pretty=pretty)

    def convert_statement(self, ast: exp.Expression) -> tuple[list[str], list[dict]]:
        """
        Inspects a single SQL AST and routes it to the appropriate
        conversion logic based on its type.

        Args:
            ast: A sqlglot Expression object.
        """
        all_logs = []

        # Route to the correct handler based on AST type
        if self._is_create_table(ast):
            # A generic Command node means sqlglot gave up on some clause; try
            # a second parse after stripping the configured clauses.
            if isinstance(ast, exp.Command):
                cleaned_sql = self._strip_unparseable_clauses(ast.sql(dialect=self.read_dialect))
                reparsed_ast, err = safe_parse_one(cleaned_sql, self.read_dialect)
                if not err and isinstance(reparsed_ast, exp.Create):
                    self.logger.debug("Re-parsed CREATE TABLE into exp.Create after removing unsupported clauses.")
                    all_logs.append({'action': 'strip_clauses', 'details': 'Removed clauses sqlglot cannot parse before conversion.'})
                    ast = reparsed_ast
                else:
                    self.logger.debug("Reparse attempt failed or did not yield exp.Create (err=%s). Proceeding with original AST.", err)

            if DdlHandler.is_column_ddl(ast):
                self.logger.info("Routing CREATE TABLE statement to DdlHandler.")
                converted_statements, ddl_logs = self.ddl_handler.handle(ast)
                all_logs.extend(ddl_logs)
                return [apply_regex_fixes(s, self.cleanup_fixes, self.logger) for s in converted_statements], all_logs

            if isinstance(ast, exp.Create) and ast.args.get('expression') is not None:
                self._review(ast.this.sql(dialect=self.write_dialect), 'CTAS_STATEMENT',
                             'CREATE TABLE AS SELECT converted without explicit key or distribution.')

        self.logger.debug(f"Routing {type(ast).__name__} statement to the basic transpiler.")
        ast, rewrite_logs = self.function_rewriter.rewrite(ast)
        all_logs.extend(rewrite_logs)
        self._remove_query_clauses(ast, all_logs)

        converted_sql = self._generate(ast)
        converted_sql = apply_regex_fixes(converted_sql, self.cleanup_fixes, self.logger)
        all_logs.append({'action': 'transpile', 'details': f'Used basic transpiler for statement type: {type(ast).__name__}'})
        return [converted_sql], all_logs

    def _generate(self, ast: exp.Expression) -> str:
        """Generate target SQL; in strict mode unsupported constructs raise ``UnsupportedError``."""
        return ast.sql(
            dialect=self.write_dialect,
            pretty=self.pretty,
            unsupported_level=ErrorLevel.RAISE if self.strict else ErrorLevel.WARN,
        )

    def _remove_query_clauses(self, ast: exp.Expression, logs: list[dict]):
        """Removes Spark-only DISTRIBUTE BY / SORT BY / CLUSTER BY query modifiers."""
        config = self.behavior_config.get('query_clause_removal', {})
        if not config.get('enabled', False):
            return

        clauses = [c.lower() for c in config.get('clauses', []) if c.lower() in _QUERY_CLAUSE_TYPES]
        for node in list(ast.find_all(exp.Expression)):
            for clause in clauses:
                value = node.args.get(clause)
                if isinstance(value, _QUERY_CLAUSE_TYPES[clause]):
                    removed_sql = value.sql(dialect=self.read_dialect)
                    node.set(clause, None)
                    logs.append({'action': 'remove_clause', 'details': f"Removed '{removed_sql}'"})
                    self._review('<query>', 'QUERY_CLAUSE_REMOVED', f"Removed Spark-only clause '{removed_sql}'.", object_type='QUERY')

    def _is_create_table(self, stmt: exp.Expression) -> bool:
        """Checks if the statement is a CREATE TABLE statement."""
        if isinstance(stmt, exp.Create):
            if (stmt.kind or '').upper() == 'TABLE':
                return True
            # `kind` can be None when non-standard clauses confuse the parser;
            # a true table DDL still wraps an exp.Table or exp.Schema.
            return isinstance(stmt.this, (exp.Table, exp.Schema)) and stmt.kind is None

        if isinstance(stmt, exp.Command):
            text_sql = stmt.sql(dialect=self.read_dialect).upper().lstrip()
            return bool(re.match(r"CREATE\s+(OR\s+REPLACE\s+)?(EXTERNAL\s+)?TABLE", text_sql))

        return False

    def _strip_unparseable_clauses(self, sql_text: str) -> str:
        """Strips the configured ``unparseable_clauses`` (first occurrence each) from the SQL text."""
        cleaned_sql = sql_text
        for clause in self.behavior_config.get('unparseable_clauses', []):
            pattern = clause.get('regex')
            if pattern:
                cleaned_sql = re.sub(pattern, "", cleaned_sql, count=1, flags=re_flags(clause.get('flags', '')))
        return cleaned_sql

    def _review(self, object_name: str, issue_type: str, message: str, object_type: str = 'TABLE'):
        if self.manual_review_logger:
            self.manual_review_logger.log_manual_review_item(
                object_name=object_name, issue_type=issue_type, message=message, object_type=object_type
            )
