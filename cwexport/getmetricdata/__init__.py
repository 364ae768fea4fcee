"""Batching, time windows and result mapping for GetMetricData requests."""