# queryxsv/defaults.py
"""Default settings - no imports to avoid circular dependencies."""

settings = {
    'default_fetch_size': 100,
    'default_output_type': 'csv',
    'include_header': True,
    'encoding': 'utf-8',
    'line_terminator': '\n',
    'date_format': '%Y-%m-%d',
    'time_format': '%H:%M:%S',
    'timestamp_format': '%Y-%m-%d %H:%M:%S.%f',  # with microseconds
    'tz_suffix': ' %z',
    'logging': {
        'directory': './logs',
        'level': 'INFO',
        'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        'timestamp_format': '%Y-%m-%d %H:%M:%S',
        'filename_format': '%Y%m%d_%H%M%S',  # Set to '' for single log file (no timestamp)
        'split_errors': True,
        'console': True,
    }
}
