import logging


class SingleLineNonEmptyFilter(logging.Filter):
    """
    Logging filter that keeps poll/sample logs on one line.
    - Collapses newlines into " | " so dumped config blocks stay readable.
    - Truncates messages longer than max_length.
    - Drops the record if the resulting message is empty.
    """
    def __init__(self, max_length=2000):
        super().__init__()
        self.max_length = max_length

    def filter(self, record: logging.LogRecord) -> int:
        try:
            msg = record.getMessage()
        except (TypeError, ValueError):
            # Bad format arguments; drop instead of raising inside logging
            return 0

        lines = [line.strip() for line in str(msg).splitlines()]
        sanitized = " | ".join(line for line in lines if line)

        if sanitized == "":
            return 0

        if self.max_length and len(sanitized) > self.max_length:
            sanitized = sanitized[:self.max_length] + f"... ({len(sanitized) - self.max_length} more chars)"

        if sanitized != msg:
            record.msg = sanitized
            record.args = ()
        return 1
