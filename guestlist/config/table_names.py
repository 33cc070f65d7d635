from enum import Enum


class TableNames(str, Enum):
    WEDDINGS = "weddings"
    GUESTS = "guests"
    GUEST_TAGS = "guest_tags"
    EVENT_GUEST_ASSIGNMENTS = "event_guest_assignments"
    SEATING_TABLES = "seating_tables"
    SEATING_ASSIGNMENTS = "seating_assignments"
