app_name = "salon_scheduling"
app_title = "Salon Scheduling"
app_publisher = "Sebastian Ortiz Valencia"
app_description = "Working hours, slot availability, bookings and waitlist for salons"
app_email = "sebastianortiz989@gmail.com"
app_license = "mit"

# Apps
# ------------------

# required_apps = []

# Includes in <head>
# ------------------

# include js, css files in header of desk.html
# app_include_css = "/assets/salon_scheduling/css/salon_scheduling.css"
# app_include_js = "/assets/salon_scheduling/js/salon_scheduling.js"

# include js in doctype views
# doctype_js = {"doctype" : "public/js/doctype.js"}

# Installation
# ------------

# before_install = "salon_scheduling.install.before_install"
# after_install = "salon_scheduling.install.after_install"

# Document Events
# ---------------
# Hook on document methods and events

# doc_events = {
# 	"*": {
# 		"on_update": "method",
# 		"on_cancel": "method",
# 		"on_trash": "method"
# 	}
# }

# Scheduled Tasks
# ---------------

scheduler_events = {
	"daily": [
		"salon_scheduling.salon_scheduling.scheduling.tasks.seed_upcoming_days"
	]
}

# Testing
# -------

# before_tests = "salon_scheduling.install.before_tests"

# default_log_clearing_doctypes = {
# 	"Logging DocType Name": 30  # days to retain logs
# }
