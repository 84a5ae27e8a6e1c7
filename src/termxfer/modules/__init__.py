"""termxfer modules package."""
