"""
Handles the conversion of Data Definition Language (DDL) statements,
specifically AST-based transformations of Spark CREATE TABLE statements into
Doris tables (key model, partitioning, distribution and properties).
"""
from typing import List, Dict, Any, Optional, Tuple
from sqlglot import exp
from dorislift.services.sql_conversion.converters.base_converter import BaseConverter
from dorislift.services.sql_conversion.utils.config_loader import load_json_from_conversion_config
from dorislift.services.sql_conversion.utils.dialect_utils import get_sqlglot_dialect
from dorislift.utils.logger import setup_logger

# Properties converted into Doris clauses rather than dropped
_CONVERTED_PROPERTIES = (exp.SchemaCommentProperty, exp.PartitionedByProperty, exp.ClusteredByProperty)

_FLOATING_KEY_TYPES = {exp.DataType.Type.FLOAT, exp.DataType.Type.DOUBLE}


class DdlHandler(BaseConverter):
    """
    Handles Data Definition Language (DDL) statements by applying a series of
    configured, feature-based transformations to the AST.
    """
    def __init__(self, source_dialect: str, target_dialect: str, manual_review_logger: Optional[Any] = None, pretty: bool = True):
        super().__init__(source_dialect, target_dialect)
        self.logger = setup_logger('DdlHandler')
        self.manual_review_logger = manual_review_logger
        self.pretty = pretty
        self.read_dialect = get_sqlglot_dialect(source_dialect)
        self.write_dialect = get_sqlglot_dialect(target_dialect)
        self.behavior_config = self._load_behavior_config()
        data_types_cfg = load_json_from_conversion_config(
            self.logger, self.source_dialect, self.target_dialect, 'ddl_conversion_rules', 'data_types.json'
        )
        self.data_type_mapping = self._flatten_data_type_mapping(data_types_cfg)
        self.paramless_targets = {t.upper() for t in data_types_cfg.get('paramless_targets', [])}
        self.logger.info("DdlHandler initialized with feature-centric configuration.")
        self.logger.debug(f"Behavior config loaded: {self.behavior_config}")

    def _load_behavior_config(self) -> Dict[str, Any]:
        return load_json_from_conversion_config(
            self.logger, self.source_dialect, self.target_dialect, 'ddl_conversion_rules', 'dialect_behaviors.json'
        )

    @staticmethod
    def _flatten_data_type_mapping(raw_cfg: Dict[str, Any]) -> Dict[str, str]:
        """Return an upper-cased source_type ➜ target_type map.

        Keys written with underscores (``TIMESTAMP_NTZ``) also get an
        underscore-less alias, which is how sqlglot names the type
        (``TIMESTAMPNTZ``).
        """
        flat_map = {k.upper(): v for k, v in (raw_cfg.get('default') or {}).items()}
        alias_map = {
            k.replace('_', ''): v
            for k, v in flat_map.items()
            if '_' in k and k.replace('_', '') not in flat_map
        }
        flat_map.update(alias_map)
        return flat_map

    @staticmethod
    def is_column_ddl(ast: exp.Expression) -> bool:
        """True for ``CREATE TABLE name (col type, ...)`` (not CTAS, not views)."""
        return (
            isinstance(ast, exp.Create)
            and (ast.kind or '').upper() == 'TABLE'
            and isinstance(ast.this, exp.Schema)
            and ast.args.get('expression') is None
        )

    def convert_statement(self, ast: exp.Expression) -> tuple[list[str], list[dict]]:
        return self.handle(ast)

    def handle(self, ast: exp.Create) -> Tuple[List[str], List[Dict[str, Any]]]:
        """Main entry point for converting a single CREATE TABLE AST."""
        logs = []
        if not self.is_column_ddl(ast):
            self.logger.warning(f"DdlHandler received a statement without a column list: {ast.sql()}. Using plain transpilation.")
            return [ast.sql(dialect=self.write_dialect, pretty=self.pretty)], logs

        try:
            schema: exp.Schema = ast.this
            table_name = schema.this.sql(dialect=self.write_dialect)
            self.logger.debug(f"Handling DDL for table: {table_name}")

            # --- Apply sequence of AST transformations ---
            self._apply_data_type_conversions(ast, table_name)

            if ast.args.get('replace') and self.behavior_config.get('remove_or_replace', True):
                ast.set('replace', False)
                logs.append({'action': 'remove_replace', 'details': f"Changed 'CREATE OR REPLACE' to 'CREATE' for '{table_name}'."})

            table_comment = self._extract_table_comment(ast, table_name)
            partition_columns = self._extract_partition_columns(ast, schema, table_name)
            distribution = self._extract_distribution(ast)
            self._remove_source_properties(ast, table_name, logs)
            key_columns = self._arrange_key_columns(schema, partition_columns, table_name)

            # --- Generate final SQL ---
            create_sql = ast.sql(dialect=self.write_dialect, pretty=self.pretty)
            clauses = self._build_table_clauses(schema, key_columns, table_comment, partition_columns, distribution)
            separator = "\n" if self.pretty else " "
            final_sql_statements = [separator.join([create_sql, *clauses])]

            self.logger.info(f"Converted CREATE TABLE '{table_name}' with key columns {key_columns}.")

        except Exception as e:
            error_log_message = f"Error handling statement: {e}. SQL: {ast.sql()}"
            self.logger.error(error_log_message, exc_info=True)
            logs.append({'action': 'error', 'details': error_log_message})
            final_sql_statements = [f"-- ERROR: {error_log_message}"]

        return final_sql_statements, logs

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def _apply_data_type_conversions(self, ast: exp.Expression, table_name: str):
        """Converts data types for all columns (nested types included) using the loaded mapping."""
        for kind_node in list(ast.find_all(exp.DataType)):
            type_name = kind_node.this.name.upper() if isinstance(kind_node.this, exp.DataType.Type) else str(kind_node.this).upper()
            target_type_str = self.data_type_mapping.get(type_name)
            if not target_type_str:
                continue

            original_sql = kind_node.sql(dialect=self.read_dialect)
            new_kind_node = exp.DataType.build(target_type_str, dialect=self.write_dialect, udt=True)

            # Attach source precision only when allowed
            if kind_node.expressions and target_type_str.upper() not in self.paramless_targets and not new_kind_node.expressions:
                new_kind_node.set('expressions', kind_node.expressions)

            kind_node.replace(new_kind_node)
            self.logger.debug(f"Data Type: Replaced '{original_sql}' with '{new_kind_node.sql(dialect=self.write_dialect)}' in {table_name}.")

    def _extract_table_comment(self, ast: exp.Create, table_name: str) -> Optional[str]:
        """Table comment text; adjacent string literals ('a' 'b') are joined."""
        comment_node = ast.find(exp.SchemaCommentProperty)
        if not comment_node:
            return None
        value = comment_node.this
        parts = value.expressions if isinstance(value, exp.Concat) else [value]
        if all(isinstance(part, exp.Literal) and part.is_string for part in parts):
            return "".join(part.name for part in parts)
        self._review(table_name, 'COMMENT_DROPPED',
                     f"Table comment {value.sql(dialect=self.read_dialect)} is not a string literal and was not carried over.")
        return None

    def _extract_partition_columns(self, ast: exp.Create, schema: exp.Schema, table_name: str) -> List[str]:
        """Return the Doris partition columns for a Spark ``PARTITIONED BY`` clause.

        Hive-style typed partition columns are appended to the schema. Transform
        partitions and unknown columns are dropped and recorded for review.
        """
        partition_prop = ast.find(exp.PartitionedByProperty)
        if not partition_prop:
            return []

        config = self.behavior_config.get('partition_conversion', {})
        mode = config.get('mode', 'auto_list')

        target = partition_prop.this
        entries = target.expressions if isinstance(target, (exp.Schema, exp.Tuple)) else [target]
        column_defs = {cd.name.upper(): cd for cd in schema.expressions if isinstance(cd, exp.ColumnDef)}

        partition_columns = []
        for entry in entries:
            if isinstance(entry, exp.ColumnDef):
                if entry.name.upper() not in column_defs:
                    new_def = entry.copy()
                    schema.append('expressions', new_def)
                    column_defs[new_def.name.upper()] = new_def
                partition_columns.append(entry.name)
            elif isinstance(entry, (exp.Identifier, exp.Column)) and entry.name.upper() in column_defs:
                partition_columns.append(entry.name)
            else:
                self._review(table_name, 'PARTITION_TRANSFORM',
                             f"Partition expression '{entry.sql(dialect=self.read_dialect)}' cannot be expressed as a Doris partition column and was dropped.")

        if not partition_columns:
            return []

        if mode != 'auto_list':
            self._review(table_name, 'PARTITION_DROPPED',
                         f"Partitioning on ({', '.join(partition_columns)}) was dropped (partition mode '{mode}').")
            return []

        if config.get('force_not_null', False):
            for name in partition_columns:
                col_def = column_defs[name.upper()]
                if not col_def.find(exp.NotNullColumnConstraint):
                    # Doris expects COMMENT to be the last column attribute
                    not_null = exp.ColumnConstraint(kind=exp.NotNullColumnConstraint())
                    col_def.set('constraints', [not_null, *(col_def.args.get('constraints') or [])])

        return partition_columns

    def _extract_distribution(self, ast: exp.Create) -> Optional[Tuple[List[str], str]]:
        """Map Spark ``CLUSTERED BY (cols) INTO n BUCKETS`` to hash columns and bucket count."""
        clustered = ast.find(exp.ClusteredByProperty)
        if not clustered:
            return None
        columns = [e.name for e in clustered.expressions if e.name]
        buckets = clustered.args.get('buckets')
        bucket_count = buckets.name if isinstance(buckets, exp.Expression) else str(buckets or '')
        if not columns:
            return None
        return columns, bucket_count or str(self.behavior_config.get('distribution', {}).get('default_buckets', 'AUTO'))

    def _remove_source_properties(self, ast: exp.Create, table_name: str, logs: List[Dict[str, Any]]):
        """Drops every Spark table property; Doris clauses are rebuilt from config."""
        properties_node = ast.args.get('properties')
        if not properties_node:
            return

        dropped = [
            prop.sql(dialect=self.read_dialect)
            for prop in properties_node.expressions
            if not isinstance(prop, _CONVERTED_PROPERTIES)
        ]
        ast.set('properties', None)

        if dropped:
            details = f"Removed Spark table properties from '{table_name}': {', '.join(dropped)}"
            logs.append({'action': 'remove_properties', 'details': details})
            self._review(table_name, 'TABLE_PROPERTY_DROPPED', details)

    def _arrange_key_columns(self, schema: exp.Schema, partition_columns: List[str], table_name: str) -> List[str]:
        """Choose the key columns and move them to the front of the schema.

        Keys are the partition columns followed by the leading schema columns
        until ``default_key_columns`` keys exist.
        """
        model_cfg = self.behavior_config.get('table_model', {})
        wanted = max(int(model_cfg.get('default_key_columns', 1)), len(partition_columns))

        column_defs = [e for e in schema.expressions if isinstance(e, exp.ColumnDef)]
        other_entries = [e for e in schema.expressions if not isinstance(e, exp.ColumnDef)]
        by_name = {cd.name.upper(): cd for cd in column_defs}

        key_names: List[str] = []
        for name in partition_columns + [cd.name for cd in column_defs]:
            if len(key_names) >= wanted:
                break
            if name.upper() in by_name and name.upper() not in {k.upper() for k in key_names}:
                key_names.append(by_name[name.upper()].name)

        key_defs = [by_name[k.upper()] for k in key_names]
        rest = [cd for cd in column_defs if cd not in key_defs]
        schema.set('expressions', key_defs + rest + other_entries)

        key_string_type = model_cfg.get('key_string_type', 'VARCHAR(255)')
        for col_def in key_defs:
            kind = col_def.args.get('kind')
            if not isinstance(kind, exp.DataType):
                continue
            if kind.sql(dialect=self.write_dialect).upper() == 'STRING':
                col_def.set('kind', exp.DataType.build(key_string_type, dialect=self.write_dialect))
                self._review(table_name, 'KEY_TYPE_CHANGED',
                             f"Key column '{col_def.name}' changed from STRING to {key_string_type}.",
                             object_type='COLUMN')
            elif kind.this in _FLOATING_KEY_TYPES:
                self._review(table_name, 'KEY_TYPE_INVALID',
                             f"Key column '{col_def.name}' has floating point type {kind.sql(dialect=self.write_dialect)}.",
                             object_type='COLUMN')

        return key_names

    def _build_table_clauses(self, schema: exp.Schema, key_columns: List[str], table_comment: Optional[str],
                             partition_columns: List[str], distribution: Optional[Tuple[List[str], str]]) -> List[str]:
        """Render the Doris clauses in the order Doris expects them after the column list."""
        identifiers = {
            cd.name.upper(): cd.this.sql(dialect=self.write_dialect)
            for cd in schema.expressions if isinstance(cd, exp.ColumnDef)
        }

        def _columns(names: List[str]) -> str:
            return ", ".join(
                identifiers.get(n.upper()) or exp.to_identifier(n).sql(dialect=self.write_dialect) for n in names
            )

        model_cfg = self.behavior_config.get('table_model', {})
        clauses = []
        if key_columns:
            clauses.append(f"{model_cfg.get('key_type', 'DUPLICATE').upper()} KEY({_columns(key_columns)})")

        if table_comment:
            escaped_comment = table_comment.replace("'", "''")
            clauses.append(f"COMMENT '{escaped_comment}'")

        if partition_columns:
            clauses.append(f"AUTO PARTITION BY LIST ({_columns(partition_columns)}) ()")

        if distribution:
            hash_columns, buckets = distribution
        else:
            hash_columns = key_columns
            buckets = str(self.behavior_config.get('distribution', {}).get('default_buckets', 'AUTO'))
        if hash_columns:
            clauses.append(f"DISTRIBUTED BY HASH({_columns(hash_columns)}) BUCKETS {buckets}")

        table_properties = self.behavior_config.get('table_properties', {})
        if table_properties:
            rendered = [f'"{k}" = "{v}"' for k, v in table_properties.items()]
            if self.pretty:
                clauses.append("PROPERTIES (\n  " + ",\n  ".join(rendered) + "\n)")
            else:
                clauses.append(f"PROPERTIES ({', '.join(rendered)})")

        return clauses

    def _review(self, object_name: str, issue_type: str, message: str, object_type: str = 'TABLE'):
        if self.manual_review_logger:
            self.manual_review_logger.log_manual_review_item(
                object_name=object_name, issue_type=issue_type, message=message, object_type=object_type
            )
        else:
            self.logger.warning(f"{issue_type} {object_name}: {message}")
