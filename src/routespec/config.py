"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(json_limit="256kb", debug=True)
    """

    # Body limits used when a route does not set ``max_body``
    json_limit: int | str = "1mb"
    form_limit: int | str = "56kb"

    # Status used for validation failures when a route does not set one
    default_failure: int = 400

    # Copy each route's spec onto ``request.state``
    expose_spec: bool = True
    # Key under ``request.state`` holding the exposed route spec
    state_key: str = "route"

    # Answer 405 when the path is known but the method is not
    method_not_allowed: bool = True

    # Include error details in default error responses
    debug: bool = False
