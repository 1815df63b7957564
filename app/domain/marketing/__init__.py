"""Marketing campaigns: audiences, delivery and A/B variants"""
