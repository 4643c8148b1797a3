"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (the upstream API, the token
service, configuration files, the terminal) by implementing the interfaces
defined in the domain layer. Also includes logging and resilience support.
"""
