"""User-reported ingredient prices."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from mealagent.collaborators import Clock, utc_now
from mealagent.logging_config import get_logger
from mealagent.normalize.names import normalize_ingredient_name
from mealagent.pricing.categories import ReportedPrice

logger = get_logger(__name__)


@dataclass
class PriceReport:
    """A price a user actually paid."""

    ingredient_name: str
    normalized_name: str
    price: float
    quantity: float
    unit: str
    reported_at: datetime
    location: str | None = None


@dataclass
class PriceReportStore:
    """In-memory store of user price reports."""

    clock: Clock = utc_now
    reports: list[PriceReport] = field(default_factory=list)

    def add_report(
        self,
        ingredient_name: str,
        price: float,
        quantity: float,
        unit: str,
        location: str | None = None,
    ) -> PriceReport:
        report = PriceReport(
            ingredient_name=ingredient_name,
            normalized_name=normalize_ingredient_name(ingredient_name),
            price=price,
            quantity=quantity,
            unit=unit,
            reported_at=self.clock(),
            location=location,
        )
        self.reports.append(report)
        logger.info(f"Price report saved for '{report.normalized_name}': {price:.2f}")
        return report

    def recent_reports(self, normalized_name: str, max_days: int = 14) -> list[PriceReport]:
        cutoff = self.clock() - timedelta(days=max_days)
        return [r for r in self.reports if r.normalized_name == normalized_name and r.reported_at >= cutoff]

    def average_price(self, normalized_name: str, max_days: int = 14) -> ReportedPrice | None:
        """Average the recent reports for an ingredient, if there are any."""
        reports = self.recent_reports(normalized_name, max_days)
        if not reports:
            return None

        avg_price = sum(r.price for r in reports) / len(reports)

        return ReportedPrice(
            avg_price=round(avg_price, 2),
            report_count=len(reports),
            last_updated=max(r.reported_at for r in reports),
        )

    def clear(self) -> None:
        self.reports.clear()
