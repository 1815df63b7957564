"""Square data import: item classification, Orders API import and CSV export import"""
