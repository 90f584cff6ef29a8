"""Calendar dates shared by the scheduling tests."""

from datetime import date

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
NEXT_MONDAY = date(2030, 1, 14)
