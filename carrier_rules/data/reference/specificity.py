"""
Rule Specificity Weights

Score added per scope dimension a rule is restricted to AND the context
matches. Unscoped dimensions are wildcards and add nothing.

Weights are chosen so a vessel match (8) beats any combination of the
lower dimensions a single rule can carry (port 4 + category group 2 +
vehicle category 1 = 7).

A port-group match is the weaker alternative to a direct port match on
the same rule; the two are never added together.

Service type narrows eligibility only.
"""

VESSEL_NAME = 8
PORT = 4
PORT_GROUP = 3
CATEGORY_GROUP = 2
VEHICLE_CATEGORY = 1
SERVICE_TYPE = 0
