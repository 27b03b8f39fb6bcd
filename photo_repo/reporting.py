import csv
import logging
from pathlib import Path

from .core import PhotoRepository


class ReportGenerator:
    def __init__(self, repo: PhotoRepository):
        self.repo = repo

    def write_link_report(self, output_csv: Path) -> int:
        """
        Writes one row per entry of the repository's current link map.
        Returns the number of rows written.
        """
        headers = ["Link Name", "Source Path", "Date", "Tags"]

        rows = 0
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(headers)

            for source, link in self.repo.links.items():
                record = self.repo.photos.get(source)
                taken = record.date.isoformat() if record and record.date else ""
                tags = ";".join(record.tags) if record else ""
                writer.writerow([Path(link).name, source, taken, tags])
                rows += 1

        logging.info(f"Link report written to {output_csv} ({rows} rows)")
        return rows
