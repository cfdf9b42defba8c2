"""
Central Configuration Module for Incident Analytics.

=== PURPOSE ===
This module is the single source of truth for every column alias, canonical
label, default value, and tunable constant used across the ingestion,
filtering, and aggregation layers.  Every other module imports from here
rather than defining its own magic values, so a new export format or a
re-tuned sample dataset only needs changes in this file.

=== DATA FLOW ===
  1. COLUMN_ALIASES drives the ingestion normaliser: for each logical field
     it lists the source-column names seen in ServiceNow / Jira / Rally
     exports, in priority order.  The first alias with a non-blank value in
     a row wins.
  2. STATUS_ALIASES / SEVERITY_ALIASES / PRIORITY_WORDS / SLA_* map the many
     spellings found in exports onto the canonical enums.
  3. DEFAULT_* values are what a missing or malformed cell turns into.
  4. SAMPLE_* constants define the taxonomy and distribution of the
     deterministic fallback dataset.
  5. AnalyticsConfig carries per-run overrides (top-N sizes, granularity)
     into the pipeline as an explicit object instead of global state.

=== KEY DESIGN DECISIONS ===
- Header names are compared after canonicalisation (lower-case, only
  letters and digits), so "Opened Date", "opened_date" and "openedDate"
  all match the single alias "Opened Date".
- "Critical" has exactly one definition: severity Critical OR priority 1.
"""

from dataclasses import dataclass
from typing import Optional

# ==========================================
# COLUMN ALIASES (per logical field)
# ==========================================
# Ordered: the first alias present in a row with a non-blank value wins.
# The canonical ServiceNow export header comes first, then the camelCase
# names produced by older upload paths, then the loosest generic names.
COLUMN_ALIASES = {
    'id': (
        'Incident ID', 'incidentId', 'Defect ID', 'defectId', 'Ticket ID',
        'Issue Key', 'Key', 'Number', 'ID',
    ),
    'title': (
        'Short Description', 'shortDescription', 'Title', 'Summary', 'Name',
        'Subject',
    ),
    'description': (
        'Description', 'Defect Description', 'Long Description', 'Details',
        'desc',
    ),
    'opened_date': (
        'Opened Date', 'openedDate', 'Opened', 'Created Date', 'Created',
        'createdAt', 'Execution Date', 'executionDate', 'Reported Date',
        'timestamp', 'Date',
    ),
    'resolved_date': (
        'Resolved Date', 'resolvedDate', 'Resolved', 'Resolution Date',
        'Closed Date', 'closedAt',
    ),
    'status': ('Status', 'State', 'Incident State'),
    'severity': ('Severity', 'Severity Level', 'sev'),
    'priority': ('Priority', 'Priority Level', 'prio'),
    'category': (
        'Category', 'Defect Type', 'defectType', 'Issue Type', 'Type',
        'Application',
    ),
    'subcategory': ('Subcategory', 'Sub Category', 'Component'),
    'source': ('Source', 'System', 'Source System', 'Tool'),
    'root_cause': ('Root Cause', 'rootCause', 'Cause', 'Root Cause Category'),
    'sla_met': ('SLA Met', 'slaMet', 'Within SLA', 'SLA'),
    'reopen_count': (
        'Reopened Count', 'Reopen Count', 'reopenCount', 'Reopens', 'Reopened',
    ),
    'resolution_time_hours': (
        'Resolution Time (hours)', 'Resolution Time Hours',
        'resolutionTimeHours', 'Resolution Hours', 'Resolution Time',
        'Time to Resolve',
    ),
    'assigned_group': ('Assigned Group', 'Assignment Group', 'Team'),
    'lob': ('LOB', 'Line of Business', 'lineOfBusiness'),
}

# Header artefacts seen in real exports: a line break inside a quoted header
# cell or inside a status value splits the row.  Repaired before parsing.
CSV_REPAIRS = (
    ('Defect Desc\nription', 'Defect Description'),
    (',In\n Progress', ',In Progress'),
)

# ==========================================
# CANONICAL LABELS
# ==========================================
STATUS_OPEN = 'Open'
STATUS_IN_PROGRESS = 'In Progress'
STATUS_RESOLVED = 'Resolved'
STATUS_CLOSED = 'Closed'
STATUS_ORDER = (STATUS_OPEN, STATUS_IN_PROGRESS, STATUS_RESOLVED, STATUS_CLOSED)

SEVERITY_CRITICAL = 'Critical'
SEVERITY_HIGH = 'High'
SEVERITY_MEDIUM = 'Medium'
SEVERITY_LOW = 'Low'
SEVERITY_ORDER = (SEVERITY_CRITICAL, SEVERITY_HIGH, SEVERITY_MEDIUM, SEVERITY_LOW)

PRIORITY_LEVELS = (1, 2, 3, 4)

SLA_MET_LABEL = 'Met'
SLA_BREACHED_LABEL = 'Breached'

# Bucket for blank text values in distributions and breakdowns.
UNKNOWN_LABEL = 'Unknown'

# Keys are canonicalised (lower-case, letters and digits only).
STATUS_ALIASES = {
    'open': STATUS_OPEN,
    'new': STATUS_OPEN,
    'reopened': STATUS_OPEN,
    'pending': STATUS_OPEN,
    'todo': STATUS_OPEN,
    'inprogress': STATUS_IN_PROGRESS,
    'progress': STATUS_IN_PROGRESS,
    'wip': STATUS_IN_PROGRESS,
    'active': STATUS_IN_PROGRESS,
    'assigned': STATUS_IN_PROGRESS,
    'onhold': STATUS_IN_PROGRESS,
    'workinprogress': STATUS_IN_PROGRESS,
    'resolved': STATUS_RESOLVED,
    'fixed': STATUS_RESOLVED,
    'done': STATUS_RESOLVED,
    'completed': STATUS_RESOLVED,
    'closed': STATUS_CLOSED,
    'cancelled': STATUS_CLOSED,
    'canceled': STATUS_CLOSED,
    'rejected': STATUS_CLOSED,
}

# Substring fallback for compound states, checked in order.
STATUS_KEYWORDS = (
    ('progress', STATUS_IN_PROGRESS),
    ('resolv', STATUS_RESOLVED),
    ('fixed', STATUS_RESOLVED),
    ('clos', STATUS_CLOSED),
    ('open', STATUS_OPEN),
)

SEVERITY_ALIASES = {
    'critical': SEVERITY_CRITICAL,
    'crit': SEVERITY_CRITICAL,
    'blocker': SEVERITY_CRITICAL,
    'sev1': SEVERITY_CRITICAL,
    'p1': SEVERITY_CRITICAL,
    'high': SEVERITY_HIGH,
    'major': SEVERITY_HIGH,
    'sev2': SEVERITY_HIGH,
    'p2': SEVERITY_HIGH,
    'medium': SEVERITY_MEDIUM,
    'moderate': SEVERITY_MEDIUM,
    'minor': SEVERITY_MEDIUM,
    'sev3': SEVERITY_MEDIUM,
    'p3': SEVERITY_MEDIUM,
    'low': SEVERITY_LOW,
    'trivial': SEVERITY_LOW,
    'info': SEVERITY_LOW,
    'sev4': SEVERITY_LOW,
    'p4': SEVERITY_LOW,
}

# Ordinal severity as exported by ServiceNow (1 = most severe).
SEVERITY_BY_ORDINAL = {
    1: SEVERITY_CRITICAL,
    2: SEVERITY_HIGH,
    3: SEVERITY_MEDIUM,
    4: SEVERITY_LOW,
}

# Priority columns sometimes carry words instead of numbers.
PRIORITY_WORDS = {
    'critical': 1,
    'urgent': 1,
    'highest': 1,
    'high': 2,
    'medium': 3,
    'moderate': 3,
    'normal': 3,
    'low': 4,
    'lowest': 4,
    'planning': 4,
}

SLA_TRUE_VALUES = frozenset({'yes', 'y', 'true', 't', '1', 'met', 'within', 'withinsla'})
SLA_FALSE_VALUES = frozenset({'no', 'n', 'false', 'f', '0', 'breached', 'missed', 'violated'})

# ==========================================
# DEFAULTS FOR MISSING / MALFORMED CELLS
# ==========================================
DEFAULT_TEXT = ''
DEFAULT_SOURCE = 'Unknown'
DEFAULT_STATUS = STATUS_OPEN
DEFAULT_SEVERITY = SEVERITY_MEDIUM
DEFAULT_PRIORITY = 0          # 0 = unknown; real priorities are 1-4
DEFAULT_REOPEN_COUNT = 0

# ==========================================
# AGGREGATION SETTINGS
# ==========================================
DEFAULT_TOP_N = 5
DEFAULT_GRANULARITY = 'month'

# Granularity -> pandas period alias.  Weekly periods end on Sunday so each
# bucket is one ISO week (Monday start).
PERIOD_FREQUENCIES = {
    'day': 'D',
    'week': 'W-SUN',
    'month': 'M',
    'quarter': 'Q',
    'year': 'Y',
}

# Mean-time-between-incidents look-back window (days).
MTBF_WINDOW_DAYS = 30

# Team efficiency: groups with fewer qualifying incidents are not ranked.
TEAM_EFFICIENCY_MIN_INCIDENTS = 2
# Resolution hours are capped at this value inside the efficiency score so
# that very fast teams do not dominate the ranking without bound.
TEAM_EFFICIENCY_HOURS_CAP = 10.0

RECENT_RECORDS_LIMIT = 10

# Preset windows offered by the date-range picker (label -> days).
DATE_RANGE_PRESETS = {
    'Last 7 days': 7,
    'Last 30 days': 30,
    'Last 90 days': 90,
    'Last 365 days': 365,
}

# ==========================================
# SAMPLE (FALLBACK) DATA TAXONOMY
# ==========================================
SAMPLE_RECORD_COUNT = 75
SAMPLE_SEED = 20250101
SAMPLE_JANUARY_RECORDS = 5     # pinned to Jan 2025 so that month always has data
SAMPLE_ANCHOR_DATE = '2025-06-30'
SAMPLE_HISTORY_MONTHS = 6

SAMPLE_CATEGORIES = {
    'Network': ('Connectivity', 'DNS', 'Load Balancing', 'VPN', 'Wireless'),
    'Security': ('Authentication', 'Certificates', 'Malware', 'Permissions', 'Vulnerability'),
    'Application': ('Functionality', 'Performance', 'Mobile', 'Reporting', 'UI/UX'),
    'Database': ('Performance', 'Backup', 'Connectivity', 'Query', 'Replication'),
    'Hardware': ('Server', 'Storage', 'Networking', 'Workstation', 'Printing'),
    'Software': ('Operating System', 'Middleware', 'Licensing', 'Integration', 'Updates'),
}

SAMPLE_ROOT_CAUSES = (
    'Configuration', 'Hardware Failure', 'Software Bug', 'Human Error',
    'External Dependency', 'Network Issue', 'Security Breach', 'Capacity',
    'Change Management', 'Training', 'Documentation', 'Process Failure',
)

SAMPLE_SOURCES = ('ServiceNow', 'Jira', 'Rally')

SAMPLE_ASSIGNED_GROUPS = (
    'Application Support', 'Network Team', 'Database Team', 'Security Team',
    'Desktop Support',
)

SAMPLE_LOBS = ('Banking', 'Payments', 'Insurance', 'Wealth', 'Corporate')

# Cumulative thresholds: a uniform draw below the first bound picks the
# first label, and so on.
SAMPLE_STATUS_WEIGHTS = (
    (0.2, STATUS_OPEN),
    (0.4, STATUS_IN_PROGRESS),
    (0.9, STATUS_RESOLVED),
    (1.0, STATUS_CLOSED),
)
SAMPLE_PRIORITY_WEIGHTS = ((0.1, 1), (0.4, 2), (0.8, 3), (1.0, 4))
SAMPLE_SEVERITY_WEIGHTS = (
    (0.2, SEVERITY_CRITICAL),
    (0.6, SEVERITY_HIGH),
    (1.0, SEVERITY_MEDIUM),
)

# Upper bound on generated resolution hours per priority (P1 fixed fastest).
SAMPLE_MAX_RESOLUTION_HOURS = {1: 8.0, 2: 24.0, 3: 48.0, 4: 48.0}
SAMPLE_SLA_MET_RATE = 0.7
SAMPLE_ROOT_CAUSE_SKEW = 1.5


# ==========================================
# PER-RUN CONFIGURATION OBJECT
# ==========================================

@dataclass(frozen=True)
class AnalyticsConfig:
    """Immutable per-run settings for the dashboard pipeline.

    Attributes:
        top_n: Number of entries kept in ranked views (root causes, teams).
        category_top_n: Cap for the category distribution (None = all).
        granularity: Default time-series bucket ('day' .. 'year').
        mtbf_window_days: Look-back window for mean time between incidents.
        recent_limit: Number of rows in the recent-incidents list.
        use_fallback: Substitute sample data when ingestion finds nothing.
    """

    top_n: int = DEFAULT_TOP_N
    category_top_n: Optional[int] = None
    granularity: str = DEFAULT_GRANULARITY
    mtbf_window_days: int = MTBF_WINDOW_DAYS
    recent_limit: int = RECENT_RECORDS_LIMIT
    use_fallback: bool = True

    def __post_init__(self):
        if self.top_n < 1:
            raise ValueError("top_n must be >= 1")
        if self.category_top_n is not None and self.category_top_n < 1:
            raise ValueError("category_top_n must be >= 1 or None")
        if self.granularity not in PERIOD_FREQUENCIES:
            raise ValueError(
                f"granularity must be one of {sorted(PERIOD_FREQUENCIES)}"
            )
        if self.mtbf_window_days < 1:
            raise ValueError("mtbf_window_days must be >= 1")
        if self.recent_limit < 0:
            raise ValueError("recent_limit must be >= 0")
