"""
Rule-driven rewriting of function calls (rename, argument reordering,
default-argument injection) applied to the AST before generation.
"""
from typing import Any, Dict, List, Optional, Tuple

import sqlglot
from sqlglot import exp

from dorislift.services.sql_conversion.converters.base_converter import BaseConverter
from dorislift.services.sql_conversion.utils.config_loader import load_json_from_conversion_config
from dorislift.services.sql_conversion.utils.dialect_utils import get_sqlglot_dialect
from dorislift.utils.logger import setup_logger

# Operator nodes that Spark also accepts in function syntax, keyed to that name.
FUNCTION_STYLE_OPERATORS = {
    exp.BitwiseLeftShift: "SHIFTLEFT",
    exp.BitwiseRightShift: "SHIFTRIGHT",
}


class FunctionRewriter(BaseConverter):
    """
    Applies the ``functions`` rules of ``function_rules.json`` to every call in
    a statement.

    Unknown functions (``exp.Anonymous``) match on the name as written;
    functions sqlglot models match on their canonical SQL name, and operator
    nodes parsed from function syntax (``shiftleft(a, n)``) match on that
    function name. A matched modelled function or operator is always replaced
    by an explicit call so the rule, not the generator, decides the emitted form.
    """
    def __init__(self, source_dialect: str, target_dialect: str, rules: Optional[List[Dict[str, Any]]] = None):
        super().__init__(source_dialect, target_dialect)
        self.logger = setup_logger('FunctionRewriter')
        self.write_dialect = get_sqlglot_dialect(target_dialect)
        if rules is None:
            rules = load_json_from_conversion_config(
                self.logger, source_dialect, target_dialect, None, 'function_rules.json'
            ).get('functions', [])
        self.rules = self._index_rules(rules)

    def _index_rules(self, rules: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
        indexed = {}
        for rule in rules:
            name = (rule.get('name') or '').strip().upper()
            if not name:
                self.logger.warning(f"Ignoring function rule without a name: {rule}")
                continue
            for key in [name, *(a.strip().upper() for a in rule.get('aliases', []))]:
                indexed[key] = rule
        return indexed

    def convert_statement(self, ast: exp.Expression) -> tuple[list[str], list[dict]]:
        new_ast, logs = self.rewrite(ast)
        return [new_ast.sql(dialect=self.write_dialect)], logs

    def rewrite(self, ast: exp.Expression) -> Tuple[exp.Expression, List[Dict[str, Any]]]:
        """Rewrite matching calls in place; returns the (possibly new) root and logs."""
        logs: List[Dict[str, Any]] = []
        if not self.rules:
            return ast, logs

        for func in list(ast.find_all(exp.Func, *FUNCTION_STYLE_OPERATORS)):
            name = self._function_name(func)
            rule = self.rules.get(name)
            if not rule:
                continue

            replacement, details = self._apply_rule(func, rule)
            if replacement is None:
                continue

            if func is ast:
                ast = replacement
            else:
                func.replace(replacement)
            logs.append({'action': 'function_rewrite', 'function': name, 'details': details})
            self.logger.debug(f"Function rewrite {name}: {details}")

        return ast, logs

    @staticmethod
    def _function_name(func: exp.Expression) -> str:
        if isinstance(func, exp.Anonymous):
            return func.name.upper()
        if type(func) in FUNCTION_STYLE_OPERATORS:
            return FUNCTION_STYLE_OPERATORS[type(func)]
        return func.sql_name().upper()

    @staticmethod
    def _call_arguments(func: exp.Expression) -> List[exp.Expression]:
        if isinstance(func, exp.Anonymous):
            return list(func.expressions)
        if isinstance(func, exp.Binary):
            return [func.left, func.right]
        args = []
        for key in func.arg_types:
            value = func.args.get(key)
            for item in value if isinstance(value, list) else [value]:
                if isinstance(item, exp.Expression):
                    args.append(item)
        return args

    def _apply_rule(self, func: exp.Expression, rule: Dict[str, Any]) -> Tuple[Optional[exp.Expression], str]:
        """Return the replacement call and a description, or ``(None, reason)`` when nothing applies."""
        args = self._call_arguments(func)
        written_name = func.name if isinstance(func, exp.Anonymous) else self._function_name(func)
        changes = []

        order = rule.get('argument_order')
        if order:
            if len(order) != len(args) or sorted(order) != list(range(len(args))):
                self.logger.info(
                    f"Skipping argument reorder for {written_name}: rule expects {len(order)} argument(s), call has {len(args)}"
                )
            else:
                args = [args[i] for i in order]
                changes.append(f"reordered arguments to {order}")

        for default in sorted(rule.get('defaults', []), key=lambda d: d.get('position', 0)):
            position = default.get('position')
            if position is None or len(args) != position:
                continue
            args.append(sqlglot.parse_one(str(default.get('value')), read=self.write_dialect))
            changes.append(f"added default argument {default.get('value')} at position {position}")

        new_name = rule.get('rename') or written_name
        if new_name.upper() != written_name.upper():
            changes.append(f"renamed {written_name} to {new_name}")

        if not changes:
            if isinstance(func, exp.Anonymous):
                return None, "no change"
            changes.append(f"emitted {written_name} as an explicit call")

        return exp.Anonymous(this=new_name, expressions=args), "; ".join(changes)
