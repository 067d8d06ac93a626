"""Academic dashboard: grade/SGPA prediction and at-risk reporting."""
