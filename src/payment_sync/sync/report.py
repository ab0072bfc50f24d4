"""Export of notification history in json, csv and text form."""

import csv
import io
import json
from collections import Counter
from typing import List, Sequence

from ..database import NotificationHistory, NotificationStatus

CSV_COLUMNS = [
    "id",
    "sevdesk_invoice_id",
    "notification_type",
    "customer_email",
    "shopify_order_id",
    "status",
    "error_message",
    "created_at",
]

REPORT_FORMATS = ("json", "csv", "text")


class HistoryReport:
    """Formats a list of notification records for operators."""

    def __init__(self, records: Sequence[NotificationHistory]):
        """
        Args:
            records: Records to include, in the order they should appear.
        """
        self.records: List[NotificationHistory] = list(records)

    def status_counts(self) -> dict:
        counts = Counter(r.status for r in self.records)
        return {status.value: counts.get(status.value, 0) for status in NotificationStatus}

    def to_json(self, indent: int = 2) -> str:
        data = {
            "total": len(self.records),
            "status_counts": self.status_counts(),
            "records": [r.to_dict() for r in self.records],
        }
        return json.dumps(data, indent=indent)

    def to_csv(self) -> str:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(CSV_COLUMNS)
        for row in (r.to_dict() for r in self.records):
            writer.writerow(["" if row[c] is None else row[c] for c in CSV_COLUMNS])
        return output.getvalue()

    def to_text(self) -> str:
        counts = self.status_counts()
        lines = [
            "=" * 60,
            "PAYMENT NOTIFICATION HISTORY",
            "=" * 60,
            f"Total Records: {len(self.records)}",
        ]
        lines.extend(f"  {status}: {count}" for status, count in counts.items())
        lines.append("-" * 60)

        for r in self.records:
            line = f"[{r.status}] invoice {r.sevdesk_invoice_id}"
            if r.shopify_order_id:
                line += f" -> order {r.shopify_order_id}"
            if r.customer_email:
                line += f" <{r.customer_email}>"
            lines.append(line)
            if r.error_message:
                lines.append(f"    {r.error_message}")

        lines.append("=" * 60)
        return "\n".join(lines)

    def render(self, format: str = "json") -> str:
        if format == "json":
            return self.to_json()
        elif format == "csv":
            return self.to_csv()
        elif format == "text":
            return self.to_text()
        else:
            raise ValueError(f"Unsupported report format: {format}")
