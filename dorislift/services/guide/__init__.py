"""
Migration guide checker: pairs SparkSQL and Doris SQL examples in Markdown
and optionally verifies them with the transpiler.
"""

from .markdown_blocks import CodeBlock, extract_code_blocks, classify_block, pair_blocks
from .checker import check_guide, check_guide_file

__all__ = ['CodeBlock', 'extract_code_blocks', 'classify_block', 'pair_blocks', 'check_guide', 'check_guide_file']
