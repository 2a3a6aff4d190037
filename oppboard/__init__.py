"""Opportunity board - local mirror of GoHighLevel opportunities."""
