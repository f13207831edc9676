from __future__ import annotations

import datetime as dt
import logging

from .config import settings
from .database import db_session, init_db
from .schemas import ReportRequest
from .services import generate_report
from .utils import default_report_range


def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    init_db()
    start_date, end_date = default_report_range(dt.date.today())
    request = ReportRequest(start_date=start_date, end_date=end_date)
    with db_session() as db:
        result = generate_report(db, request)
    print(f"File written to {result.path}")


if __name__ == "__main__":
    main()
