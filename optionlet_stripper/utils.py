import QuantLib as ql
import pandas as pd


def same_day_counter(dc1, dc2):
    """QuantLib day counters compare equal when they share the same name."""
    return dc1.name() == dc2.name()


def ordinal(n):
    """1 -> '1st', 2 -> '2nd', 11 -> '11th' (used in error messages)."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


class DateUtils:
    """Small helpers to keep date/period parsing in one place."""

    @staticmethod
    def to_ql_date(d):
        """Convert common Python date representations into QuantLib.Date."""
        if isinstance(d, ql.Date):
            return d
        if isinstance(d, str):
            d = pd.to_datetime(d).date()
        return ql.Date(d.day, d.month, d.year)

    @staticmethod
    def parse_period(s):
        """Parse strings such as '6Mo', '18M', '1Yr', '10Y', '2W'."""
        s = str(s).strip().upper()
        s = s.replace("MONTH", "M").replace("MO", "M")
        s = s.replace("YEAR", "Y").replace("YR", "Y")
        units = {"D": ql.Days, "W": ql.Weeks, "M": ql.Months, "Y": ql.Years}
        if s and s[-1] in units and s[:-1].isdigit():
            return ql.Period(int(s[:-1]), units[s[-1]])
        # QuantLib's own parser handles composite strings such as '1Y6M'
        return ql.Period(s)

    @staticmethod
    def ensure_period(tenor):
        """Convert Period/string to QuantLib.Period."""
        if isinstance(tenor, ql.Period):
            return tenor
        return DateUtils.parse_period(tenor)
