"""Collects Spark constructs the Doris output could not carry over and writes
them to ``manual_review_required_<timestamp>.json`` next to the converted SQL.
"""
import os
import json
from collections import Counter
from datetime import datetime
from typing import Dict, Optional


# Predefined issue types and suggested actions
MANUAL_REVIEW_PATTERNS = {
    'QUERY_CLAUSE_REMOVED': {
        'severity': 'WARNING',
        'suggested_action': 'DISTRIBUTE BY / SORT BY / CLUSTER BY have no Doris equivalent; add ORDER BY if the ordering was relied upon'
    },
    'PARTITION_DROPPED': {
        'severity': 'WARNING',
        'suggested_action': 'Define Doris RANGE/LIST partitions manually for the listed columns'
    },
    'PARTITION_TRANSFORM': {
        'severity': 'WARNING',
        'suggested_action': 'Spark partition transforms (years(), bucket(), ...) need a Doris RANGE partition on a derived column'
    },
    'TABLE_PROPERTY_DROPPED': {
        'severity': 'INFO',
        'suggested_action': 'Review dropped Spark storage properties (USING, LOCATION, TBLPROPERTIES) for Doris PROPERTIES equivalents'
    },
    'KEY_TYPE_CHANGED': {
        'severity': 'INFO',
        'suggested_action': 'Doris key columns cannot be STRING; confirm the VARCHAR length fits the data'
    },
    'KEY_TYPE_INVALID': {
        'severity': 'ERROR',
        'suggested_action': 'Doris key columns cannot be FLOAT/DOUBLE; choose another key column or use DECIMAL'
    },
    'COMMENT_DROPPED': {
        'severity': 'INFO',
        'suggested_action': 'Add the table comment to the Doris DDL by hand as a plain string literal'
    },
    'CTAS_STATEMENT': {
        'severity': 'INFO',
        'suggested_action': 'Doris infers the key and distribution for CREATE TABLE AS SELECT; add DISTRIBUTED BY / PROPERTIES if needed'
    },
}


class ManualReviewLogger:
    """Handles logging of manual review items to a dedicated file."""

    def __init__(self, output_dir: Optional[str] = None, logger=None):
        self.output_dir = output_dir
        self.logger = logger
        self.review_items = []
        self.log_file_path = None
        self.current_file = None

    def log_manual_review_item(self,
                              object_name: str,
                              issue_type: str,
                              message: str,
                              file_path: Optional[str] = None,
                              object_type: str = 'UNKNOWN',
                              severity: Optional[str] = None,
                              suggested_action: Optional[str] = None,
                              line_number: Optional[int] = None):
        """Log an item that requires manual review.

        Severity and suggested action default to the entry in
        ``MANUAL_REVIEW_PATTERNS`` for *issue_type*.
        """
        pattern = MANUAL_REVIEW_PATTERNS.get(issue_type, {})
        review_item = {
            'timestamp': datetime.now().isoformat(),
            'file_path': file_path or self.current_file or '<inline>',
            'object_name': object_name,
            'object_type': object_type,
            'issue_type': issue_type,
            'severity': severity or pattern.get('severity', 'WARNING'),
            'message': message,
            'suggested_action': suggested_action or pattern.get('suggested_action'),
            'line_number': line_number,
            'status': 'PENDING_REVIEW'
        }

        self.review_items.append(review_item)

        # Also log to main logger if available
        if self.logger:
            log_msg = f"MANUAL REVIEW [{review_item['severity']}] {review_item['file_path']}::{object_name} - {issue_type}: {message}"
            if review_item['severity'] == 'ERROR':
                self.logger.error(log_msg)
            else:
                self.logger.warning(log_msg)

    def write_manual_review_log(self) -> Optional[str]:
        """Write all manual review items to a dedicated log file."""
        if not self.review_items or not self.output_dir:
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_filename = f"manual_review_required_{timestamp}.json"
        self.log_file_path = os.path.join(self.output_dir, log_filename)

        os.makedirs(self.output_dir, exist_ok=True)

        summary_data = {
            'conversion_timestamp': timestamp,
            'total_items_requiring_review': len(self.review_items),
            'summary_by_type': self._create_summary_by_type(),
            'summary_by_severity': self._create_summary_by_severity(),
            'summary_by_file': self._create_summary_by_file(),
            'review_items': self.review_items,
            'instructions': {
                'overview': 'Spark constructs that were dropped or altered while generating Doris SQL.',
                'next_steps': [
                    'Open the converted file named in file_path and locate object_name',
                    'Apply suggested_action to the Doris statement, or change the Spark source and re-run',
                    'Set status to COMPLETED once the Doris statement has been checked'
                ],
                'severity_levels': {
                    'ERROR': 'Doris will reject the statement as generated',
                    'WARNING': 'Doris accepts the statement but semantics or layout differ from Spark',
                    'INFO': 'Spark-only setting removed; usually safe'
                }
            }
        }

        try:
            with open(self.log_file_path, 'w', encoding='utf-8') as f:
                json.dump(summary_data, f, indent=2, ensure_ascii=False)

            if self.logger:
                self.logger.info(f"Manual review log written to: {self.log_file_path}")
                self.logger.info(f"Total items requiring manual review: {len(self.review_items)}")

            return self.log_file_path

        except OSError as e:
            if self.logger:
                self.logger.error(f"Error writing manual review log: {e}")
            return None

    def create_summary_report(self) -> str:
        """Plain-text digest of the review items, printed at the end of a run."""
        if not self.review_items:
            return "No manual review items found."

        rule = "=" * 80
        lines = [rule, "SPARK -> DORIS: MANUAL REVIEW REQUIRED", rule,
                 f"Total Items Requiring Review: {len(self.review_items)}", ""]
        for heading, counts in (("BY SEVERITY:", self._create_summary_by_severity()),
                                ("BY ISSUE TYPE:", self._create_summary_by_type()),
                                ("BY FILE:", self._create_summary_by_file())):
            lines.append(heading)
            lines.extend(f"  {key}: {count} items" for key, count in counts.items())
            lines.append("")

        if self.log_file_path:
            lines.append(f"Details: {self.log_file_path}")
        lines.append(rule)
        return "\n".join(lines)

    def _count_by(self, field: str, by_count: bool = False) -> Dict[str, int]:
        """Count review items per value of *field*, optionally most frequent first."""
        counts = Counter(item[field] for item in self.review_items)
        if by_count:
            return dict(counts.most_common())
        return dict(counts)

    def _create_summary_by_type(self) -> Dict[str, int]:
        return self._count_by('issue_type', by_count=True)

    def _create_summary_by_severity(self) -> Dict[str, int]:
        return self._count_by('severity')

    def _create_summary_by_file(self) -> Dict[str, int]:
        return self._count_by('file_path', by_count=True)
