"""HLS packaging and thumbnail extraction for stored source videos."""
