"""
Read side of sales: filtered listing for the report screen and exports,
and the header + items detail of one sale.
"""
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import selectinload

from kala_pos.exceptions import NotFoundError, ValidationError
from kala_pos.models import Sale, SaleItem, SaleType
from kala_pos.utils.formatters import parse_date

LIKE_ESCAPE = '\\'


def escape_like(text: str) -> str:
    """Make %, _ and the escape character match literally in a LIKE pattern."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )


def _parse_day(value, field: str) -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    try:
        return parse_date(str(value))
    except ValueError:
        raise ValidationError(f'{field} must be a date in YYYY-MM-DD format')


def parse_sale_filters(args) -> dict:
    """
    Read list filters from query-string style arguments.

    Keys: date, startDate, endDate, type, search. An exact ``date`` wins
    over the range. Unknown ``type`` values are ignored.
    """
    filters = {
        'day': _parse_day(args.get('date'), 'date'),
        'start_date': _parse_day(args.get('startDate'), 'startDate'),
        'end_date': _parse_day(args.get('endDate'), 'endDate'),
        'sale_type': None,
        'search': None,
    }

    raw_type = (args.get('type') or '').strip().lower()
    if raw_type in {t.value for t in SaleType}:
        filters['sale_type'] = SaleType(raw_type)

    search = (args.get('search') or '').strip()
    if search:
        filters['search'] = search[:100]

    if filters['day'] is None and filters['start_date'] and filters['end_date']:
        if filters['start_date'] > filters['end_date']:
            raise ValidationError('startDate must not be after endDate')

    return filters


def _day_range(start: date, end: date):
    """Half-open datetime range covering the calendar days start..end."""
    return datetime.combine(start, time.min), datetime.combine(end + timedelta(days=1), time.min)


def build_sales_query(session, day: Optional[date] = None, start_date: Optional[date] = None,
                      end_date: Optional[date] = None, sale_type: Optional[SaleType] = None,
                      search: Optional[str] = None):
    """Sale headers matching the filters, newest first."""
    query = session.query(Sale)

    if day:
        lower, upper = _day_range(day, day)
        query = query.filter(Sale.date >= lower, Sale.date < upper)
    else:
        if start_date:
            query = query.filter(Sale.date >= _day_range(start_date, start_date)[0])
        if end_date:
            query = query.filter(Sale.date < _day_range(end_date, end_date)[1])

    if sale_type:
        query = query.filter(Sale.type == sale_type.value)

    if search:
        pattern = f'%{escape_like(search)}%'
        query = query.filter(or_(
            Sale.customer_name.ilike(pattern, escape=LIKE_ESCAPE),
            Sale.mobile.ilike(pattern, escape=LIKE_ESCAPE)
        ))

    return query.order_by(Sale.date.desc(), Sale.id.desc())


def list_sales(session, filters: Optional[dict] = None) -> List[Sale]:
    return build_sales_query(session, **(filters or {})).all()


def count_items(session, sale_ids: Iterable[int]) -> Dict[int, int]:
    """Number of item rows per sale id."""
    ids = list(sale_ids)
    if not ids:
        return {}
    rows = session.query(SaleItem.sale_id, func.count(SaleItem.id)).filter(
        SaleItem.sale_id.in_(ids)
    ).group_by(SaleItem.sale_id).all()
    counts = dict(rows)
    return {sale_id: counts.get(sale_id, 0) for sale_id in ids}


def sale_detail_dict(sale: Sale) -> dict:
    """Header plus items, each with the product's current barcode."""
    detail = sale.to_dict()
    detail['items'] = [item.to_dict() for item in sale.items]
    return detail


def get_sale_detail(session, sale_id: int) -> dict:
    sale = session.query(Sale).options(
        selectinload(Sale.items).joinedload(SaleItem.product)
    ).filter(Sale.id == sale_id).first()

    if not sale:
        raise NotFoundError('Sale not found')
    return sale_detail_dict(sale)
