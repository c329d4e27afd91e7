"""Receiver that emits a dummy gauge on a fixed interval, and its metric metadata."""