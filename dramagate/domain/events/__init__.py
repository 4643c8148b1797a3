"""Domain Event definitions.

Represents significant occurrences within the domain (upstream calls,
credential refreshes, partial aggregations) that other parts of the system
might react to, such as the event logger.
"""
