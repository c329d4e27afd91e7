"""Scraper and receiver reporting the status state and conditions of custom resources."""