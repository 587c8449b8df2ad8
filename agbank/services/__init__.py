"""Application services layer (session and data stores, form submission flows).

Services coordinate work across domains and infrastructure. They should avoid UI concerns.
"""
