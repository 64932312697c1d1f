"""HTTP upload relay: stores multipart uploads locally and forwards an audit line to a webhook."""
