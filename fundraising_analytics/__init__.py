"""Fundraising dashboard analytics: attribution, forecasting, funnels and value metrics."""
