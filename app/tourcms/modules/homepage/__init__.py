"""
Home page content: hero section with its call-to-action buttons, hero stats,
testimonials and the "why choose us" cards.
"""
