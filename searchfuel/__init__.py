"""
SearchFuel Competitor Discovery

Turns a business website URL into:
1. A structured business profile (name, description, industry, audience)
2. A homepage content analysis and satellite page list
3. A ranked list of AI-validated direct competitors sourced from DataForSEO SERPs
"""

__version__ = "0.1.0"
