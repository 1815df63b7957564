"""Website CMS: page SEO and ad placements"""
