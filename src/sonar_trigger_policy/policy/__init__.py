"""Skip/allow policy for the code-analysis step.

The policy is a pure function of its configuration, the build under evaluation and
the injected collaborators (badge lookup, message catalog, clock).
"""
