"""
Footage and speed aggregation.

Everything in this package is per-request and stateless; the only
shared resource is the pooled engine behind data.samples.
"""
