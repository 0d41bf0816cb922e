"""Application ids, statuses, categories, checks, incidents, profiles, traces and tables."""