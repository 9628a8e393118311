"""Infrastructure adapters: Firebase (Firestore, Auth) and Google APIs."""
