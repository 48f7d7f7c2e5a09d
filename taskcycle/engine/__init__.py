"""Store-independent scheduling logic: civil dates, recurrence matching,
streaks, rollover detection, expiry thresholds and display numbering."""
